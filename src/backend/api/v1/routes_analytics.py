from __future__ import annotations

from fastapi import APIRouter, Depends

from src.backend.domain.models.analytics import MedicalStudentStatistics, PatientStatistics
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import require_medical_student, require_patient
from src.backend.services.analytics.service import analytics_service


router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(latency_dependency)],
)


@router.get("/patient", response_model=PatientStatistics)
async def patient_statistics(current_user: User = Depends(require_patient)) -> PatientStatistics:
    return analytics_service.compute_patient_statistics(current_user.id)


@router.get("/medical-student", response_model=MedicalStudentStatistics)
async def medical_student_statistics(
    current_user: User = Depends(require_medical_student),
) -> MedicalStudentStatistics:
    return analytics_service.compute_medical_student_statistics(current_user.id)
