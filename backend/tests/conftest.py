import asyncio
import inspect
import pathlib
import sys

import pytest

BACKEND = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: run the coroutine test on a fresh event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Drive ``async def`` tests to completion without an asyncio plugin.

    Only the fixtures the test names are passed; ``funcargs`` also carries the
    ones pulled in indirectly (``tmp_path_factory`` behind ``tmp_path``).
    """

    test = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test):
        return None
    kwargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(test(**kwargs))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


@pytest.fixture
def database_url(tmp_path: pathlib.Path) -> str:
    """A throwaway aiosqlite database under the test's tmp directory."""

    return f"sqlite+aiosqlite:///{tmp_path / 'premium_desk.db'}"
