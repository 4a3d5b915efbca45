from fastapi import FastAPI, HTTPException

from statgen import __version__
from statgen.api import create_app

try:
    app = create_app(require_enabled=True)
except RuntimeError:
    app = FastAPI(title="StatGen", version=__version__)

    @app.get("/")
    async def api_disabled() -> dict[str, str]:
        raise HTTPException(
            status_code=503,
            detail="Local API disabled. Enable by setting enable_local_api = true under [runtime] in statgen.toml",
        )
