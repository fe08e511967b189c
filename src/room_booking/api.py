from aws_lambda_powertools import Logger, Tracer
from aws_lambda_powertools.metrics import Metrics, MetricUnit
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from room_booking import service
from room_booking.errors import ReservationError, RoomUnavailable
from room_booking.identity import Identity, current_identity, require_admin
from room_booking.models import (
    Message,
    ReservationCreate,
    ReservationEnvelope,
    ReservationList,
    RoomEnvelope,
    RoomList,
    StatusUpdate,
)

logger = Logger()
tracer = Tracer()
metrics = Metrics(namespace="RoomBookingAPI")

app = FastAPI(title="Room Booking API", version="0.1.0")


@app.exception_handler(ReservationError)
def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    if isinstance(exc, RoomUnavailable):
        metrics.add_metric(name="ReservationConflict", value=1, unit=MetricUnit.Count)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"message": message})


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"message": "Server error", "error": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/")
def welcome() -> dict[str, str]:
    return {"message": "Room Reservation System API"}


@app.get("/api/rooms", response_model=RoomList)
@tracer.capture_method
def list_rooms() -> RoomList:
    return RoomList(rooms=service.list_rooms())


@app.get("/api/rooms/{room_id}", response_model=RoomEnvelope)
@tracer.capture_method
def get_room(room_id: str) -> RoomEnvelope:
    return RoomEnvelope(room=service.get_room(room_id))


@app.post("/api/reservations", response_model=ReservationEnvelope, status_code=201)
@tracer.capture_method
def create_reservation(
    payload: ReservationCreate, identity: Identity = Depends(current_identity)
) -> ReservationEnvelope:
    reservation = service.create_reservation(identity.user_id, payload)
    metrics.add_metric(name="CreateReservation", value=1, unit=MetricUnit.Count)
    return ReservationEnvelope(message="Reservation created successfully", reservation=reservation)


@app.get("/api/reservations/my", response_model=ReservationList)
@tracer.capture_method
def list_my_reservations(identity: Identity = Depends(current_identity)) -> ReservationList:
    return ReservationList(reservations=service.list_my_reservations(identity.user_id))


@app.get("/api/reservations", response_model=ReservationList)
@tracer.capture_method
def list_reservations(identity: Identity = Depends(current_identity)) -> ReservationList:
    return ReservationList(reservations=service.list_all_reservations())


@app.get(
    "/api/reservations/{reservation_id}",
    response_model=ReservationEnvelope,
    response_model_exclude_unset=True,
)
@tracer.capture_method
def get_reservation(
    reservation_id: str, identity: Identity = Depends(current_identity)
) -> ReservationEnvelope:
    return ReservationEnvelope(reservation=service.get_reservation(reservation_id))


@app.patch("/api/reservations/{reservation_id}/status", response_model=ReservationEnvelope)
@tracer.capture_method
def update_reservation_status(
    reservation_id: str, payload: StatusUpdate, identity: Identity = Depends(require_admin)
) -> ReservationEnvelope:
    reservation = service.update_reservation_status(reservation_id, payload.status)
    metrics.add_metric(name="UpdateReservationStatus", value=1, unit=MetricUnit.Count)
    return ReservationEnvelope(message="Reservation status updated successfully", reservation=reservation)


@app.delete("/api/reservations/{reservation_id}", response_model=Message)
@tracer.capture_method
def cancel_reservation(reservation_id: str, identity: Identity = Depends(current_identity)) -> Message:
    service.cancel_reservation(identity.user_id, reservation_id)
    metrics.add_metric(name="CancelReservation", value=1, unit=MetricUnit.Count)
    return Message(message="Reservation cancelled successfully")
