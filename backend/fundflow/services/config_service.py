"""
FundFlow Backend — Config Service
===================================

What:  CRUD for Config entries and their ConfigType groups.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.exceptions import ConflictError, NotFoundError
from fundflow.models.config import Config, ConfigType
from fundflow.pagination import PageParams
from fundflow.schemas.common import PaginationMeta
from fundflow.schemas.config import ConfigCreate, ConfigTypeCreate, ConfigUpdate

logger = logging.getLogger(__name__)


class ConfigService:
    # ── Config types ──────────────────────────────────────────────────────

    async def list_types(self, db: AsyncSession) -> List[ConfigType]:
        result = await db.execute(select(ConfigType).order_by(ConfigType.id))
        return list(result.scalars().all())

    async def create_type(self, db: AsyncSession, payload: ConfigTypeCreate) -> ConfigType:
        """Raises ConflictError when the name is already used."""
        existing = await db.execute(select(ConfigType).where(ConfigType.name == payload.name))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"Config type '{payload.name}' already exists")

        config_type = ConfigType(name=payload.name)
        db.add(config_type)
        await db.flush()
        logger.info("Config type %s created: %s", config_type.id, config_type.name)
        return config_type

    async def _require_type(self, db: AsyncSession, config_type_id: int) -> ConfigType:
        config_type = await db.get(ConfigType, config_type_id)
        if config_type is None:
            raise NotFoundError(resource="ConfigType", resource_id=config_type_id)
        return config_type

    # ── Configs ───────────────────────────────────────────────────────────

    async def get(self, db: AsyncSession, config_id: int) -> Config:
        result = await db.execute(
            select(Config)
            .where(Config.id == config_id)
            .execution_options(populate_existing=True)
        )
        config = result.scalar_one_or_none()
        if config is None:
            raise NotFoundError(resource="Config", resource_id=config_id)
        return config

    async def list_configs(
        self,
        db: AsyncSession,
        page: PageParams,
        config_type_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> tuple[List[Config], PaginationMeta]:
        conditions = []
        if config_type_id is not None:
            conditions.append(Config.config_type_id == config_type_id)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Config.name.ilike(pattern),
                    Config.value.ilike(pattern),
                    Config.description.ilike(pattern),
                )
            )

        total = (await db.execute(select(func.count(Config.id)).where(*conditions))).scalar() or 0
        result = await db.execute(
            select(Config)
            .where(*conditions)
            .order_by(Config.created_at.desc(), Config.id.desc())
            .offset(page.skip)
            .limit(page.size)
        )
        return list(result.scalars().all()), PaginationMeta.from_page_info(page.info(total))

    async def create(self, db: AsyncSession, payload: ConfigCreate) -> Config:
        await self._require_type(db, payload.config_type_id)

        config = Config(
            name=payload.name,
            value=payload.value,
            description=payload.description,
            config_type_id=payload.config_type_id,
        )
        db.add(config)
        await db.flush()
        logger.info("Config %s created in type %s", config.id, config.config_type_id)
        return await self.get(db, config.id)

    async def update(self, db: AsyncSession, config_id: int, payload: ConfigUpdate) -> Config:
        config = await self.get(db, config_id)
        changes = payload.model_dump(exclude_unset=True)

        if changes.get("config_type_id") is not None:
            await self._require_type(db, changes["config_type_id"])
        for field, value in changes.items():
            if field in ("name", "config_type_id") and value is None:
                continue
            setattr(config, field, value)

        await db.flush()
        return await self.get(db, config.id)

    async def delete(self, db: AsyncSession, config_id: int) -> None:
        config = await self.get(db, config_id)
        await db.delete(config)
        await db.flush()
        logger.info("Config %s deleted", config_id)


config_service = ConfigService()
