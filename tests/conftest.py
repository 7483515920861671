from datetime import datetime, timezone

import pytest

from dbkeep.types.schema_types import (
    Column,
    ColumnType,
    NodePosition,
    Relation,
    Schema,
    TableData,
)


FIXED_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def generated_at():
    return FIXED_TIMESTAMP


@pytest.fixture
def users_sql():
    return "CREATE TABLE users (id SERIAL PRIMARY KEY, email VARCHAR(255) UNIQUE NOT NULL);"


@pytest.fixture
def blog_schema():
    """users 1:N posts 스키마"""
    users = TableData(
        id="t-users",
        name="users",
        columns=[
            Column(id="c-users-id", name="id", type=ColumnType.SERIAL,
                   primary_key=True, nullable=False, unique=True),
            Column(id="c-users-email", name="email", type=ColumnType.VARCHAR,
                   length=255, nullable=False, unique=True),
            Column(id="c-users-active", name="active", type=ColumnType.BOOLEAN, default="TRUE"),
        ],
        position=NodePosition(x=10, y=20),
    )
    posts = TableData(
        id="t-posts",
        name="posts",
        columns=[
            Column(id="c-posts-id", name="id", type=ColumnType.SERIAL,
                   primary_key=True, nullable=False, unique=True),
            Column(id="c-posts-user-id", name="user_id", type=ColumnType.INT, nullable=False),
            Column(id="c-posts-title", name="title", type=ColumnType.TEXT),
        ],
    )
    relation = Relation(
        id="r-posts-users",
        source_table_id="t-posts",
        source_column_id="c-posts-user-id",
        target_table_id="t-users",
        target_column_id="c-users-id",
        on_delete="CASCADE",
    )
    return Schema(tables=[users, posts], relations=[relation])
