from types import SimpleNamespace

from planbot.config import PlanningConfig
from planbot.middlewares.ConfigMiddleware import ConfigMiddleware


class TestConfigMiddleware:
    async def test_injects_planning_section(self):
        planning = PlanningConfig(vacation_zone="Zone A")
        config = SimpleNamespace(planning=planning)
        seen = {}

        async def handler(event, data):
            seen.update(data)
            return "handled"

        result = await ConfigMiddleware(config)(handler, object(), {})

        assert result == "handled"
        assert seen["config"] is config
        assert seen["planning_config"].vacation_zone == "Zone A"
