# lawrepo/api/v1/endpoints/database.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from lawrepo.core.errors import error_body
from lawrepo.core.security import require_permission
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.database import MigrationRequest
from lawrepo.services import migration_service
from lawrepo.services.migration_service import MigrationError

router = APIRouter(prefix="/database", tags=["database"])


@router.get("/health")
def database_health(db: Session = Depends(get_db)):
    report = migration_service.health_check(db)
    if report["status"] != "healthy":
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=report)
    return report


@router.post("/init")
def init_database(db: Session = Depends(get_db)):
    try:
        return migration_service.init_database(db)
    except MigrationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Database initialization failed", str(e)),
        )


@router.get("/migrations")
def list_migrations():
    migrations = migration_service.list_migrations()
    return {"success": True, "count": len(migrations), "migrations": migrations}


@router.post("/execute-migration")
def execute_migration(
    payload: MigrationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("database:migrate")),
):
    if not payload.migration_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="migrationName is required"
        )
    migration = migration_service.get_migration(payload.migration_name)
    if migration is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown migration {payload.migration_name}",
        )
    try:
        return migration_service.apply_migration(db, migration, dry_run=payload.dry_run)
    except MigrationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_body("Migration failed", str(e)),
        )


@router.get("/execute-migration")
def migration_status(db: Session = Depends(get_db)):
    return {"success": True, **migration_service.migration_status(db)}
