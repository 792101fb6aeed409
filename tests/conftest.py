"""
Shared fixtures for the meta engine test suite.
"""

import os

# Keep test runs from writing log files; must be set before Config is imported
os.environ.setdefault('LOG_DIR', '')

import pytest
import pytest_asyncio

from meta_engine.database import Database


ALPHA_CSV = """Place,Player Name,Faction,W,L,D,Total Points
1,Alice,Aeldari,5,0,0,100
2,Bob,Orks,4,1,0,90
3,Carol,Necrons,3,2,0,80
"""


@pytest.fixture
def alpha_csv():
    """Single-event Format A export with three rated players"""
    return ALPHA_CSV


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh file-backed database per test"""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'meta_test.db'}")
    await database.initialize()
    yield database
    await database.close()
