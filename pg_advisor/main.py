"""FastAPI main application"""
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pg_advisor import __version__
from pg_advisor.config import settings
from pg_advisor.core.errors import CatalogConnectionError
from pg_advisor.deps import connect_target_db
from pg_advisor.routers import advisor
from pg_advisor.smart_logger import SmartLogger


app = FastAPI(
    title="PostgreSQL Index Advisor API",
    description="""
    Read-only index health analysis for PostgreSQL schemas.

    ## Workflow
    1. Review findings: `GET /advisor/report?schemas=commerce,civics`
    2. Apply selected fixes: `POST /advisor/apply` with `{"apply": true}`
    """,
    version=__version__,
)

app.include_router(advisor.router)


@app.exception_handler(CatalogConnectionError)
async def catalog_connection_error_handler(request: Request, exc: CatalogConnectionError):
    SmartLogger.log(
        "ERROR",
        "advisor.api.connection_failed",
        category="advisor.api",
        params={"path": request.url.path, "error": str(exc)},
    )
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "PostgreSQL Index Advisor API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        async with connect_target_db() as conn:
            version = await conn.fetchval("SELECT version()")
        return {
            "status": "healthy",
            "target_db": "connected",
            "version": (version.split(",")[0] if isinstance(version, str) else str(version)),
            "schemas": settings.schema_list(),
        }
    except CatalogConnectionError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pg_advisor.main:app",
        host=settings.api_host,
        port=settings.api_port,
    )
