"""
FundFlow Backend — Config Service Tests
"""

import pytest

from fundflow.exceptions import ConflictError, NotFoundError
from fundflow.pagination import PageParams
from fundflow.schemas.config import ConfigCreate, ConfigTypeCreate, ConfigUpdate
from fundflow.services.config_service import ConfigService


class TestConfigService:
    def setup_method(self):
        self.service = ConfigService()

    @pytest.mark.asyncio
    async def test_type_names_are_unique(self, db_session):
        await self.service.create_type(db_session, ConfigTypeCreate(name="LINE"))

        with pytest.raises(ConflictError):
            await self.service.create_type(db_session, ConfigTypeCreate(name="LINE"))

    @pytest.mark.asyncio
    async def test_create_requires_existing_type(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.create(db_session, ConfigCreate(name="group_id", config_type_id=99))
        assert exc_info.value.context["resource"] == "ConfigType"

    @pytest.mark.asyncio
    async def test_crud_cycle(self, db_session):
        config_type = await self.service.create_type(db_session, ConfigTypeCreate(name="Approval"))
        config = await self.service.create(
            db_session,
            ConfigCreate(name="erp", value="https://erp.example.com", config_type_id=config_type.id),
        )
        assert config.config_type.name == "Approval"

        updated = await self.service.update(db_session, config.id, ConfigUpdate(value="https://erp2.example.com"))
        assert updated.value == "https://erp2.example.com"
        assert updated.name == "erp"

        await self.service.delete(db_session, config.id)
        with pytest.raises(NotFoundError):
            await self.service.get(db_session, config.id)

    @pytest.mark.asyncio
    async def test_update_to_unknown_type(self, db_session):
        config_type = await self.service.create_type(db_session, ConfigTypeCreate(name="Mail"))
        config = await self.service.create(db_session, ConfigCreate(name="smtp", config_type_id=config_type.id))

        with pytest.raises(NotFoundError):
            await self.service.update(db_session, config.id, ConfigUpdate(config_type_id=42))

    @pytest.mark.asyncio
    async def test_list_filters_by_type_and_search(self, db_session):
        line = await self.service.create_type(db_session, ConfigTypeCreate(name="LINE"))
        mail = await self.service.create_type(db_session, ConfigTypeCreate(name="Mail"))
        await self.service.create(db_session, ConfigCreate(name="group_id", config_type_id=line.id))
        await self.service.create(db_session, ConfigCreate(name="channel_token", config_type_id=line.id))
        await self.service.create(db_session, ConfigCreate(name="sender", config_type_id=mail.id))

        by_type, meta = await self.service.list_configs(db_session, PageParams(), config_type_id=line.id)
        assert meta.total == 2
        assert {c.name for c in by_type} == {"group_id", "channel_token"}

        found, _ = await self.service.list_configs(db_session, PageParams(), search="send")
        assert [c.name for c in found] == ["sender"]

        assert [t.name for t in await self.service.list_types(db_session)] == ["LINE", "Mail"]
