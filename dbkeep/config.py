"""
환경 변수 기반 설정
.env 파일이 있으면 먼저 로드한 뒤 값을 읽습니다.
"""
import os

from dotenv import load_dotenv

load_dotenv()

# parse/generate 요청에 dialect가 없을 때 사용할 기본값
DEFAULT_DIALECT = os.getenv("DBKEEP_DEFAULT_DIALECT", "PostgreSQL")

LOG_LEVEL = os.getenv("DBKEEP_LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("DBKEEP_CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
