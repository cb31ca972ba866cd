# tests/test_app.py

import pytest
from textual.widgets import Input

from tasktrail.app import DARK_MODE_KEY, TaskTrailApp
from tasktrail.config import Config
from tasktrail.context import AppContext
from tasktrail.models import User
from tasktrail.screens import AuthScreen, DashboardScreen, TaskFormModal


@pytest.fixture()
def context(config: Config) -> AppContext:
    return AppContext.create(config)


def _sign_in(context: AppContext) -> None:
    user, _ = context.identity.signup("ada@example.com", "secret", "Ada", "Lovelace")
    context.user_store.set_user(User.from_record(user))


async def _settle(app: TaskTrailApp, pilot) -> None:
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


@pytest.mark.asyncio
async def test_signed_out_user_sees_auth_screen(context: AppContext) -> None:
    app = TaskTrailApp(context)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        assert isinstance(app.screen, AuthScreen)


@pytest.mark.asyncio
async def test_login_routes_to_dashboard(context: AppContext) -> None:
    context.identity.signup("ada@example.com", "secret")
    context.identity.logout()

    app = TaskTrailApp(context)
    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause()
        app.screen.query_one("#email-input", Input).value = "ada@example.com"
        password = app.screen.query_one("#password-input", Input)
        password.value = "secret"
        password.focus()
        await pilot.press("enter")
        await _settle(app, pilot)

        assert context.user_store.is_authenticated
        assert isinstance(app.screen, DashboardScreen)


@pytest.mark.asyncio
async def test_dashboard_loads_tasks(context: AppContext) -> None:
    _sign_in(context)
    await context.gateway.create_task({"title": "Buy milk"})

    app = TaskTrailApp(context)
    async with app.run_test(size=(120, 40)) as pilot:
        await _settle(app, pilot)

        assert isinstance(app.screen, DashboardScreen)
        assert [t.title for t in context.task_store.tasks] == ["Buy milk"]


@pytest.mark.asyncio
async def test_create_task_through_form(context: AppContext) -> None:
    _sign_in(context)

    app = TaskTrailApp(context)
    async with app.run_test(size=(120, 40)) as pilot:
        await _settle(app, pilot)
        await pilot.press("a")
        await pilot.pause()
        assert isinstance(app.screen, TaskFormModal)

        app.screen.query_one("#title-input", Input).value = "Buy milk"
        app.screen.action_save()
        await _settle(app, pilot)

        assert isinstance(app.screen, DashboardScreen)
        assert [t.title for t in context.task_store.tasks] == ["Buy milk"]
        assert context.task_store.pagination.total == 1


@pytest.mark.asyncio
async def test_form_stays_open_on_validation_error(context: AppContext) -> None:
    _sign_in(context)

    app = TaskTrailApp(context)
    async with app.run_test(size=(120, 40)) as pilot:
        await _settle(app, pilot)
        await pilot.press("a")
        await pilot.pause()

        app.screen.action_save()
        await _settle(app, pilot)

        assert isinstance(app.screen, TaskFormModal)
        assert not app.screen.query_one("#title-error").has_class("hidden")
        assert context.task_store.tasks == []


@pytest.mark.asyncio
async def test_logout_returns_to_auth(context: AppContext) -> None:
    _sign_in(context)

    app = TaskTrailApp(context)
    async with app.run_test(size=(120, 40)) as pilot:
        await _settle(app, pilot)
        await pilot.press("ctrl+o")
        await _settle(app, pilot)

        assert isinstance(app.screen, AuthScreen)
        assert not context.user_store.is_authenticated


@pytest.mark.asyncio
async def test_dark_mode_choice_is_remembered(context: AppContext) -> None:
    app = TaskTrailApp(context)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert app.theme == "textual-dark"
        app.action_toggle_dark()
        assert app.theme == "textual-light"

    assert context.storage.get_item(DARK_MODE_KEY) == "false"

    again = TaskTrailApp(context)
    async with again.run_test() as pilot:
        await pilot.pause()
        assert again.theme == "textual-light"
