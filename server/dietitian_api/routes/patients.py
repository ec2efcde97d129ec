"""Patient API routes."""
import sqlite3
from fastapi import APIRouter, Depends, HTTPException

from ..models.patient import DietChartSummary, Patient, PatientCreate, PatientDetail
from ..database import DatabaseManager, get_db, new_id, utc_now
from ..services.session import SessionContext, require_roles

router = APIRouter(prefix="/api/patients", tags=["Patients"])

practitioner_session = require_roles("dietitian", "admin")


def _row_to_patient(row) -> Patient:
    """Convert SQLite row to Patient model."""
    return Patient(**{key: row[key] for key in row.keys()})


def fetch_patient_for(
    conn: sqlite3.Connection, patient_id: str, session: SessionContext
) -> sqlite3.Row | None:
    """The patient row if it exists and the session may see it."""
    row = conn.execute("SELECT * FROM patients WHERE id = ?", (patient_id,)).fetchone()
    if row is None:
        return None
    if session.is_admin or row["practitioner_id"] == session.user_id:
        return row
    if session.role == "patient" and session.email and row["email"] == session.email:
        return row
    return None


@router.get("", response_model=list[Patient])
async def list_patients(
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Patients of the signed-in practitioner (all patients for admins), by name."""
    with db.get_conn() as conn:
        if session.is_admin:
            rows = conn.execute("SELECT * FROM patients ORDER BY full_name").fetchall()
        else:
            rows = conn.execute(
                "SELECT * FROM patients WHERE practitioner_id = ? ORDER BY full_name",
                (session.user_id,),
            ).fetchall()
    return [_row_to_patient(row) for row in rows]


@router.post("", response_model=Patient, status_code=201)
async def create_patient(
    body: PatientCreate,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Register a new patient under the signed-in practitioner."""
    patient_id = new_id()
    now = utc_now()
    record = {
        "id": patient_id,
        "practitioner_id": session.user_id,
        **body.model_dump(),
        "created_at": now,
        "updated_at": now,
    }
    columns = ", ".join(record)
    placeholders = ", ".join("?" for _ in record)

    with db.get_conn() as conn:
        conn.execute(
            f"INSERT INTO patients ({columns}) VALUES ({placeholders})",
            tuple(record.values()),
        )
        row = conn.execute("SELECT * FROM patients WHERE id = ?", (patient_id,)).fetchone()
    return _row_to_patient(row)


@router.get("/{patient_id}", response_model=PatientDetail)
async def get_patient(
    patient_id: str,
    session: SessionContext = Depends(practitioner_session),
    db: DatabaseManager = Depends(get_db),
):
    """Patient details with BMI and diet charts, newest chart first."""
    with db.get_conn() as conn:
        row = fetch_patient_for(conn, patient_id, session)
        if row is None:
            raise HTTPException(status_code=404, detail="Patient not found")
        charts = conn.execute(
            """
            SELECT id, title, chart_date, notes, total_calories, created_at
            FROM diet_charts
            WHERE patient_id = ?
            ORDER BY chart_date DESC, created_at DESC
            """,
            (patient_id,),
        ).fetchall()

    patient = _row_to_patient(row)
    return PatientDetail(
        patient=patient,
        bmi=patient.bmi,
        diet_charts=[DietChartSummary(**dict(chart)) for chart in charts],
    )
