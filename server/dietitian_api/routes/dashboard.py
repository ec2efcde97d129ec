"""Role dashboard API routes."""
import asyncio
import logging
from fastapi import APIRouter, Depends

from ..models.dashboard import AdminStats, DietitianStats, PatientChart, PatientHome
from ..database import DatabaseManager, get_db
from ..services.session import SessionContext, require_roles
from .diet_charts import _row_to_chart, fetch_chart_items
from .patients import _row_to_patient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/dietitian", response_model=DietitianStats, response_model_by_alias=True)
async def get_dietitian_dashboard(
    session: SessionContext = Depends(require_roles("dietitian", "admin")),
    db: DatabaseManager = Depends(get_db),
):
    """Patient, diet chart and active food counts for the signed-in dietitian."""
    owner = ("WHERE practitioner_id = ?", (session.user_id,))
    patients, charts, foods = await asyncio.gather(
        asyncio.to_thread(db.count, "patients", *owner),
        asyncio.to_thread(db.count, "diet_charts", *owner),
        asyncio.to_thread(db.count, "foods", "WHERE is_active = 1"),
    )
    return DietitianStats(patients=patients, diet_charts=charts, foods=foods)


@router.get("/admin", response_model=AdminStats, response_model_by_alias=True)
async def get_admin_dashboard(
    session: SessionContext = Depends(require_roles("admin")),
    db: DatabaseManager = Depends(get_db),
):
    """System-wide counts."""
    users, dietitians, patients, foods, charts = await asyncio.gather(
        asyncio.to_thread(db.count, "profiles"),
        asyncio.to_thread(db.count, "user_roles", "WHERE role = ?", ("dietitian",)),
        asyncio.to_thread(db.count, "user_roles", "WHERE role = ?", ("patient",)),
        asyncio.to_thread(db.count, "foods"),
        asyncio.to_thread(db.count, "diet_charts"),
    )
    return AdminStats(
        total_users=users,
        total_dietitians=dietitians,
        total_patients=patients,
        total_foods=foods,
        total_diet_charts=charts,
    )


@router.get("/patient", response_model=PatientHome)
async def get_patient_dashboard(
    session: SessionContext = Depends(require_roles("patient")),
    db: DatabaseManager = Depends(get_db),
):
    """
    The patient record linked to the signed-in account and its diet charts.

    The link is the profile email matching the patient email. Accounts
    without a match get an empty page rather than an error.
    """
    if not session.email:
        return PatientHome(full_name=session.full_name)

    with db.get_conn() as conn:
        row = conn.execute(
            "SELECT * FROM patients WHERE email = ? ORDER BY created_at LIMIT 1",
            (session.email,),
        ).fetchone()
        if row is None:
            logger.info(f"No patient record linked to {session.user_id}")
            return PatientHome(full_name=session.full_name)

        chart_rows = conn.execute(
            """
            SELECT * FROM diet_charts
            WHERE patient_id = ?
            ORDER BY chart_date DESC, created_at DESC
            """,
            (row["id"],),
        ).fetchall()

        charts = []
        for chart_row in chart_rows:
            chart = _row_to_chart(chart_row)
            items = [item for item, _ in fetch_chart_items(conn, chart.id)]
            charts.append(PatientChart(**chart.model_dump(), items=items))

    return PatientHome(
        full_name=session.full_name,
        patient=_row_to_patient(row),
        diet_charts=charts,
    )
