from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dbkeep.config import CORS_ORIGINS
from dbkeep.routers.sql_router import router as sql_router


def create_app() -> FastAPI:
    """FastAPI 앱을 생성합니다."""
    app = FastAPI(title="DBKeep Schema API")

    # CORS 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sql_router)

    @app.get("/")
    async def root():
        return {"message": "DBKeep Schema API"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
