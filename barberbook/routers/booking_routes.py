# barberbook/routers/booking_routes.py

from fastapi import APIRouter, Depends

from barberbook.admission import BookingAdmissionController
from barberbook.config import Settings, get_settings
from barberbook.deps import get_admission_controller
from barberbook.schemas import AdmissionResponse, BookingCreate

router = APIRouter(
    tags=["booking"],
)


@router.post("/booking", response_model=AdmissionResponse, status_code=201)
def create_booking(
    booking: BookingCreate,
    controller: BookingAdmissionController = Depends(get_admission_controller),
    settings: Settings = Depends(get_settings),
):
    # Rejections surface as BookingError subclasses, mapped in main.py
    admission = controller.admit(booking.to_request(settings.default_duration_minutes))
    return {
        "id": admission.appointment_id,
        "status": admission.status,
        "message": "Appointment created",
    }
