"""
# Health Routes

Liveness/readiness probe for container orchestration.

## Usage Example

```yaml
readinessProbe:
  httpGet:
    path: /health
    port: 8000
```

Returns `200 {"status": "healthy", "database": true}` when MongoDB answers a ping and
`503 {"status": "unhealthy", "database": false}` otherwise.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from starter_pack_explorer.database import db_manager

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    database_ok = await db_manager.health_check()
    if database_ok:
        return {"status": "healthy", "database": True}
    return JSONResponse(status_code=503, content={"status": "unhealthy", "database": False})
