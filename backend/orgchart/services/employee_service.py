"""Cosmos DB employee store."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosHttpResponseError
from pydantic import ValidationError

from orgchart.core.config import Settings
from orgchart.models.employee import Employee, Site, Status

logger = logging.getLogger(__name__)

# Role names written by the first version of the org chart app
_LEGACY_ROLES: dict[str, str] = {
    "Sales Director": "Director",
    "Sales Manager": "Manager",
    "Team Lead": "TeamLead",
}

_COSMOS_SYSTEM_KEYS = ("_rid", "_self", "_etag", "_attachments", "_ts")


class EmployeeServiceError(Exception):
    pass


class EmployeeService:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        endpoint = settings.COSMOS_DB_ENDPOINT
        key = settings.COSMOS_DB_KEY
        database_name = settings.COSMOS_DB_DATABASE
        container_name = settings.COSMOS_DB_EMPLOYEES_CONTAINER

        if not endpoint or not key:
            logger.warning("Cosmos DB credentials missing — service not initialized")
            return

        self.client = CosmosClient(endpoint, key)
        db = self.client.get_database_client(database_name)
        self.container = db.get_container_client(container_name)
        self.initialized = True
        logger.info("EmployeeService initialized (container=%s)", container_name)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
            self.client = None
            self.container = None
            self.initialized = False

    async def _query(self, query: str, params: list[dict[str, Any]] | None = None) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        async for item in self.container.query_items(
            query=query,
            parameters=params or [],
            enable_cross_partition_query=True,
        ):
            items.append(item)
        return items

    async def _read_raw(self, employee_id: str) -> dict[str, Any] | None:
        items = await self._query(
            "SELECT * FROM c WHERE c.id = @id",
            [{"name": "@id", "value": employee_id}],
        )
        return items[0] if items else None

    async def get_employee(self, employee_id: str) -> Employee | None:
        if not self.container:
            return None

        raw = await self._read_raw(employee_id)
        if raw is None:
            return None
        return self._transform_employee(raw)

    async def find_by_name(self, name: str) -> Employee | None:
        if not self.container:
            return None

        items = await self._query(
            "SELECT * FROM c WHERE c.name = @name",
            [{"name": "@name", "value": name}],
        )
        if not items:
            return None
        return self._transform_employee(items[0])

    async def get_employees(self, site: Site | None = None, include_terminated: bool = False) -> list[Employee]:
        if not self.container:
            return []

        query = "SELECT * FROM c"
        params: list[dict[str, Any]] = []
        if site is not None:
            query += " WHERE c.site = @site"
            params.append({"name": "@site", "value": site.value})

        results: list[Employee] = []
        for item in await self._query(query, params):
            try:
                employee = self._transform_employee(item)
            except ValidationError:
                logger.warning("Skipping malformed employee document %s", item.get("id"))
                continue
            if employee.is_terminated and not include_terminated:
                continue
            results.append(employee)
        return results

    async def create_employee(self, fields: dict[str, Any]) -> str:
        if not self.container:
            raise EmployeeServiceError("EmployeeService not initialized")

        employee_id = str(uuid.uuid4())
        employee = Employee.model_validate({"status": Status.ACTIVE, **fields, "id": employee_id})
        try:
            await self.container.create_item(body=employee.model_dump(mode="json", by_alias=True))
        except CosmosHttpResponseError as e:
            raise EmployeeServiceError(f"Failed to create employee {employee.name}: {e}") from e

        logger.info("Created employee %s (%s)", employee.name, employee_id)
        return employee_id

    async def update_employee(self, employee_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` (snake_case) into the stored record.

        Keys the model does not know about are preserved on the document.
        """
        if not self.container:
            raise EmployeeServiceError("EmployeeService not initialized")

        raw = await self._read_raw(employee_id)
        if raw is None:
            raise EmployeeServiceError(f"Employee {employee_id} not found")

        current = self._transform_employee(raw)
        try:
            merged = Employee.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            raise EmployeeServiceError(f"Invalid update for employee {employee_id}: {e}") from e

        body = {k: v for k, v in raw.items() if k not in _COSMOS_SYSTEM_KEYS}
        body.update(merged.model_dump(mode="json", by_alias=True))
        try:
            await self.container.upsert_item(body=body)
        except CosmosHttpResponseError as e:
            raise EmployeeServiceError(f"Failed to update employee {employee_id}: {e}") from e

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            query = "SELECT VALUE COUNT(1) FROM c"
            async for _ in self.container.query_items(
                query=query,
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    def _transform_employee(self, raw: dict[str, Any]) -> Employee:
        data = dict(raw)
        role = data.get("role")
        if role in _LEGACY_ROLES:
            data["role"] = _LEGACY_ROLES[role]
        return Employee.model_validate(data)


employee_service = EmployeeService()
