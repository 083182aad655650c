import json

import pytest

from otel_orchestrator.models import FileRole

from helpers import (
    CACHE_TS,
    DATABASE_TS,
    EXTERNAL_API_TS,
    PACKAGE_JSON,
    SERVER_TS,
    USER_SERVICE_TS,
    USERS_ROUTE_TS,
    make_analysis,
    make_file,
)

@pytest.fixture
def sample_codebase(tmp_path):
    """A small Express service laid out like a typical Node.js project."""
    root = tmp_path / "sample-app"
    files = {
        "package.json": json.dumps(PACKAGE_JSON, indent=2),
        "src/server.ts": SERVER_TS,
        "src/routes/users.ts": USERS_ROUTE_TS,
        "src/services/userService.ts": USER_SERVICE_TS,
        "src/utils/database.ts": DATABASE_TS,
        "src/utils/cache.ts": CACHE_TS,
        "src/utils/externalApi.ts": EXTERNAL_API_TS,
        "src/config/settings.ts": "export const PORT = 3000;\n",
        "node_modules/express/index.js": "module.exports = {};\n",
        "dist/server.js": "require('express');\n",
        ".git/config.js": "ignored\n",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def full_analysis():
    """Analysis with one route, one service and three utility files."""
    return make_analysis(
        files=[
            make_file("src/routes/users.ts", FileRole.ROUTE),
            make_file("src/services/userService.ts", FileRole.SERVICE),
            make_file("src/utils/database.ts", FileRole.UTILITY),
            make_file("src/utils/cache.ts", FileRole.UTILITY),
            make_file("src/utils/externalApi.ts", FileRole.UTILITY),
        ]
    )
