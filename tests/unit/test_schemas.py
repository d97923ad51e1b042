import pytest
from pydantic import ValidationError

from repairshop.models.enums import JobStatus, PaymentMethod, Priority
from repairshop.schemas import (
    CustomerCreate,
    JobCreate,
    PaymentCreate,
    RejectRequest,
    SendQuoteRequest,
    ShopSettingsUpdate,
    StatusUpdate,
)


def test_status_update_accepts_known_status():
    body = StatusUpdate(status="READY_FOR_PICKUP")
    assert body.status is JobStatus.READY_FOR_PICKUP
    assert body.notes is None


def test_status_update_rejects_unknown_status():
    with pytest.raises(ValidationError):
        StatusUpdate(status="COMPLETED")


def test_job_create_defaults():
    job = JobCreate(
        customer_id="c1", appliance_type="Oven", appliance_brand="GE", issue_description="Cold",
    )
    assert job.priority is Priority.MEDIUM
    assert job.assigned_technician_id is None


def test_customer_create_requires_names():
    with pytest.raises(ValidationError):
        CustomerCreate(first_name="", last_name="Doe", phone="1")


def test_send_quote_requires_items():
    with pytest.raises(ValidationError):
        SendQuoteRequest(items=[])


def test_send_quote_tax_rate_is_a_percentage():
    with pytest.raises(ValidationError):
        SendQuoteRequest(items=[{"description": "Pump", "quantity": 1, "unit_price": 10}], tax_rate=120)

    body = SendQuoteRequest(items=[{"description": "Pump", "quantity": 1, "unit_price": 10}], tax_rate=7.5)
    assert body.items[0].model_dump(mode="json")["item_type"] == "PART"


def test_payment_amount_must_be_positive():
    with pytest.raises(ValidationError):
        PaymentCreate(amount=0)
    assert PaymentCreate(amount=5).payment_method is PaymentMethod.CASH


def test_reject_reason_optional():
    assert RejectRequest().reason is None


def test_settings_update_port_range():
    with pytest.raises(ValidationError):
        ShopSettingsUpdate(smtp_port=70000)
    assert ShopSettingsUpdate(smtp_port=465).model_dump(exclude_none=True) == {"smtp_port": 465}
