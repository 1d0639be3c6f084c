"""
Composition root for the client: one AppContext per running application.

    async with await AppContext.create() as ctx:
        await ctx.store.sign_in(email, password)
        habits = await ctx.habits.refresh()
"""

import logging
import webbrowser
from typing import Any, Callable, Optional

from supabase import acreate_client

from naitai.client.auth_gateway import AuthGateway
from naitai.client.habits_api import HabitCollection, HabitsApi
from naitai.client.route_guard import RouteGuard
from naitai.client.session_listener import SessionBootstrap
from naitai.client.session_store import SessionStore
from naitai.config.settings import ClientSettings

logger = logging.getLogger(__name__)


class AppContext:
    def __init__(
        self,
        gateway: AuthGateway,
        api_url: str,
        store: Optional[SessionStore] = None,
        habits_api: Optional[HabitsApi] = None,
    ):
        self.gateway = gateway
        self.store = store or SessionStore(gateway)
        self.bootstrap = SessionBootstrap(gateway, self.store)
        self.guard = RouteGuard(self.store)
        self.api = habits_api or HabitsApi(api_url, self.access_token)
        self.habits = HabitCollection(self.api)

    @classmethod
    async def create(
        cls,
        settings: Optional[ClientSettings] = None,
        open_url: Optional[Callable[[str], Any]] = webbrowser.open,
    ) -> "AppContext":
        settings = settings or ClientSettings()
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError("Missing Supabase environment variables")
        supabase = await acreate_client(settings.supabase_url, settings.supabase_anon_key)
        gateway = AuthGateway(supabase.auth, site_url=settings.site_url, open_url=open_url)
        return cls(gateway, settings.api_url)

    def access_token(self) -> Optional[str]:
        return getattr(self.store.state.session, "access_token", None)

    async def start(self) -> None:
        logger.info("Starting client context")
        await self.bootstrap.start()

    async def stop(self) -> None:
        await self.bootstrap.stop()
        await self.api.aclose()
        logger.info("Client context stopped")

    async def __aenter__(self) -> "AppContext":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
