from datetime import timedelta
from types import SimpleNamespace

from repairshop.models.base import utcnow
from repairshop.services.notifications import (
    JobStatusChanged, render_email, run_post_commit_hooks, tracking_url,
)


def test_status_update_renders_both_variants():
    html, text = render_email(
        "status_update",
        company_name="Fix-It <Shop>",
        customer_name="Dana Doe",
        job_number="JOB-00001",
        appliance_type="Dishwasher",
        tracking_url="http://shop.test/track-job?jobNumber=JOB-00001",
        old_status="OPEN",
        new_status="AWAITING_PARTS",
        status_color="#f59e0b",
        notes="Pump ordered",
    )
    assert "AWAITING PARTS" in html
    assert "Fix-It &lt;Shop&gt;" in html
    assert "Pump ordered" in html
    assert "OPEN -> AWAITING PARTS" in text
    assert "Fix-It <Shop>" in text


def test_quote_template_lists_items_and_links():
    quote = SimpleNamespace(
        quote_number="JOB-00001-Q",
        items=[SimpleNamespace(description="Pump", quantity=2, unit_price=50.0, total_price=100.0)],
        subtotal=100.0, tax_amount=0.0, discount_amount=0.0, total_amount=100.0,
        valid_until=utcnow() + timedelta(days=30),
    )
    html, text = render_email(
        "quote_sent",
        company_name="Shop", customer_name="Dana", job_number="JOB-00001",
        appliance_type="Washer", quote=quote,
        accept_url="http://shop.test/quote/accept/q1",
        reject_url="http://shop.test/quote/reject/q1",
    )
    assert "$100.00" in html
    assert "http://shop.test/quote/accept/q1" in html
    assert "Decline: http://shop.test/quote/reject/q1" in text


def test_tracking_url_encodes_job_number():
    assert tracking_url("JOB 1").endswith("/track-job?jobNumber=JOB+1")


class _Session:
    def __init__(self):
        self.rollbacks = 0

    async def rollback(self):
        self.rollbacks += 1


async def test_post_commit_hooks_isolate_failures():
    seen = []
    session = _Session()

    async def first(db, event):
        raise ValueError("nope")

    async def second(db, event):
        seen.append(event.job_number)

    event = JobStatusChanged("j1", "JOB-00001", "OPEN", "CLOSED", "", None)
    await run_post_commit_hooks(session, (first, second), event)
    assert seen == ["JOB-00001"]
    assert session.rollbacks == 1


def test_job_confirmation_names_job_and_tracking_link():
    html, text = render_email(
        "job_confirmation",
        company_name="Shop", customer_name="Ravi Patel", job_number="JOB-00007",
        appliance_type="Refrigerator", appliance_brand="LG",
        issue_description="Freezer icing <up>",
        tracking_url="http://shop.test/track-job?jobNumber=JOB-00007",
    )
    assert "JOB-00007" in html
    assert "Freezer icing &lt;up&gt;" in html
    assert "Appliance: LG Refrigerator" in text
    assert "Track your job at: http://shop.test/track-job?jobNumber=JOB-00007" in text


def test_reminder_and_invoice_templates_show_totals():
    quote = SimpleNamespace(
        quote_number="JOB-00001-Q", total_amount=240.0,
        valid_until=utcnow() + timedelta(days=3),
    )
    _, text = render_email(
        "quote_reminder",
        company_name="Shop", customer_name="Dana", job_number="JOB-00001",
        appliance_type="Washer", quote=quote,
        accept_url="http://shop.test/quote/accept/q1",
        reject_url="http://shop.test/quote/reject/q1",
    )
    assert "Total: $240.00" in text
    assert "Accept: http://shop.test/quote/accept/q1" in text

    invoice = SimpleNamespace(
        invoice_number="INV-00001",
        items=[SimpleNamespace(description="Labor", quantity=1, unit_price=1200.0, total_price=1200.0)],
        subtotal=1200.0, tax_amount=0.0, total_amount=1200.0, balance_amount=1200.0,
        due_date=utcnow() + timedelta(days=30),
    )
    html, text = render_email(
        "invoice",
        company_name="Shop", customer_name="Dana", job_number="JOB-00001",
        invoice=invoice, terms="Net 30",
    )
    assert "$1,200.00" in html
    assert "- Labor: 1 x $1,200.00 = $1,200.00" in text
    assert "Net 30" in text


def test_communication_template_carries_message():
    html, text = render_email(
        "communication",
        company_name="Shop", customer_name="Dana", job_number="JOB-00001",
        subject="Parts arrived", message="We can finish on <Friday>.",
        tracking_url="http://shop.test/track-job?jobNumber=JOB-00001",
    )
    assert "We can finish on &lt;Friday&gt;." in html
    assert text.startswith("Parts arrived")
    assert "We can finish on <Friday>." in text
