"""
스키마 편집 서비스
캔버스에서 들어오는 테이블/컬럼/관계 편집을 스키마에 반영합니다.
"""

from dataclasses import replace
from typing import List, Optional, Sequence

from dbkeep.model_manager.utils.relation_utils import relation_exists
from dbkeep.types.schema_types import (
    Column,
    Relation,
    Schema,
    TableData,
    create_default_column,
    create_default_relation,
    create_default_table,
)
from dbkeep.utils.logger import setup_logger
from dbkeep.utils.name_converter import unique_name

logger = setup_logger("schema_editor")

DEFAULT_TABLE_NAME = 'new_table'
DEFAULT_COLUMN_NAME = 'column'


class SchemaEditor:
    """Schema 하나를 제자리에서 수정하는 편집기"""

    def __init__(self, schema: Optional[Schema] = None):
        self.schema = schema if schema is not None else Schema()

    # === 테이블 ===

    def get_table(self, table_id: str) -> Optional[TableData]:
        return next((table for table in self.schema.tables if table.id == table_id), None)

    def add_table(self, name: Optional[str] = None) -> TableData:
        """
        테이블을 추가합니다. 이름이 겹치면 `_1`, `_2` ... 를 붙입니다.
        새 테이블에는 `id SERIAL` PK 컬럼이 하나 들어 있습니다.
        """
        table_name = unique_name(
            (name or '').strip() or DEFAULT_TABLE_NAME,
            (table.name for table in self.schema.tables),
        )
        table = create_default_table(table_name)
        self.schema.tables.append(table)
        logger.debug(f"테이블 추가: {table_name}")
        return table

    def update_table(self, table_id: str, **updates) -> Optional[TableData]:
        """테이블을 수정합니다. 이름은 다른 테이블과 겹치지 않게 조정됩니다."""
        updates.pop('id', None)
        if 'name' in updates:
            name = (updates['name'] or '').strip()
            if not name:
                logger.warning("빈 테이블명으로는 변경할 수 없습니다")
                return None
            updates['name'] = unique_name(
                name,
                (table.name for table in self.schema.tables if table.id != table_id),
            )
        for index, table in enumerate(self.schema.tables):
            if table.id == table_id:
                self.schema.tables[index] = replace(table, **updates)
                return self.schema.tables[index]
        return None

    def delete_table(self, table_id: str) -> None:
        """테이블과 연결된 관계를 함께 삭제합니다."""
        self.schema.tables = [table for table in self.schema.tables if table.id != table_id]
        self.schema.relations = [
            relation for relation in self.schema.relations
            if relation.source_table_id != table_id and relation.target_table_id != table_id
        ]

    # === 컬럼 ===

    def add_column(self, table_id: str, name: Optional[str] = None, **fields) -> Optional[Column]:
        table = self.get_table(table_id)
        if table is None:
            return None

        column_name = unique_name(
            (name or '').strip() or DEFAULT_COLUMN_NAME,
            (column.name for column in table.columns),
        )
        fields.pop('id', None)
        column = create_default_column(name=column_name, **fields)
        table.columns.append(column)
        return column

    def update_column(self, table_id: str, column_id: str, **updates) -> Optional[Column]:
        """컬럼을 수정합니다. 빈 이름은 거부하고 겹치는 이름은 조정합니다."""
        table = self.get_table(table_id)
        if table is None:
            return None

        if 'name' in updates:
            name = (updates['name'] or '').strip()
            if not name:
                logger.warning("빈 컬럼명으로는 변경할 수 없습니다")
                return None
            updates['name'] = unique_name(
                name,
                (column.name for column in table.columns if column.id != column_id),
            )

        updates.pop('id', None)
        for index, column in enumerate(table.columns):
            if column.id == column_id:
                table.columns[index] = replace(column, **updates)
                return table.columns[index]
        return None

    def delete_column(self, table_id: str, column_id: str) -> None:
        """컬럼과 그 컬럼을 참조하는 관계를 함께 삭제합니다."""
        table = self.get_table(table_id)
        if table is None:
            return

        table.columns = [column for column in table.columns if column.id != column_id]
        self.schema.relations = [
            relation for relation in self.schema.relations
            if relation.source_column_id != column_id and relation.target_column_id != column_id
        ]

    def reorder_columns(self, table_id: str, ordered_ids: Sequence[str]) -> None:
        """
        컬럼 순서를 변경합니다. PK 컬럼은 항상 앞에 옵니다.
        ordered_ids에 없는 컬럼은 기존 순서대로 뒤에 붙습니다.
        """
        table = self.get_table(table_id)
        if table is None:
            return

        by_id = {column.id: column for column in table.columns}
        ordered = [by_id[column_id] for column_id in ordered_ids if column_id in by_id]
        listed = {column.id for column in ordered}
        ordered.extend(column for column in table.columns if column.id not in listed)

        pk_columns = [column for column in ordered if column.primary_key]
        other_columns = [column for column in ordered if not column.primary_key]
        table.columns = pk_columns + other_columns

    # === 관계 ===

    def relation_exists(self, candidate: Relation) -> bool:
        """같은 컬럼 쌍(방향 무관)을 잇는 관계가 이미 있는지 확인합니다."""
        return relation_exists(self.schema.relations, candidate)

    def add_relation(self, **fields) -> Optional[Relation]:
        """
        관계를 추가합니다.

        Returns:
            새 관계. 같은 컬럼 쌍을 잇는 관계가 이미 있으면 None
        """
        relation = create_default_relation(**fields)
        if self.relation_exists(relation):
            logger.warning("같은 컬럼 사이에 이미 관계가 있습니다")
            return None

        self.schema.relations.append(relation)
        return relation

    def update_relation(self, relation_id: str, **updates) -> Optional[Relation]:
        updates.pop('id', None)
        for index, relation in enumerate(self.schema.relations):
            if relation.id == relation_id:
                self.schema.relations[index] = replace(relation, **updates)
                return self.schema.relations[index]
        return None

    def delete_relation(self, relation_id: str) -> None:
        self.schema.relations = [
            relation for relation in self.schema.relations if relation.id != relation_id
        ]

    def get_table_relations(self, table_id: str) -> List[Relation]:
        return [
            relation for relation in self.schema.relations
            if relation.source_table_id == table_id or relation.target_table_id == table_id
        ]
