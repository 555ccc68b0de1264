from datetime import timedelta
from decimal import Decimal

import pytest

from storefront.data.models import QuotationRequestModel
from storefront.domain.errors import ForbiddenError, NotFoundError, ValidationFailed
from storefront.domain.schemas import QuotationCreate, QuotationRespondIn
from storefront.services.quotation_service import QuotationService
from storefront.utils.time import utc_now


@pytest.fixture
def quotes(db, notifier):
    return QuotationService(db, notifier)


@pytest.fixture
def buyer(make_user):
    return make_user(customer_type="B2B", company="Acme Pumps", approval_status="approved")


def _request(product, quantity=50, **kwargs):
    return QuotationCreate(product_id=product.id, quantity=quantity, **kwargs)


# -----------------------------------------------------
# customer side
# -----------------------------------------------------
def test_b2b_request_is_pending_and_notifies(quotes, sink, buyer, make_product):
    product = make_product(title="Gate Valve")

    quotation = quotes.request_quote(buyer, _request(product, specifications="PN16"))

    assert quotation["status"] == "pending"
    assert quotation["quantity"] == 50
    assert quotation["product"]["title"] == "Gate Valve"
    assert quotation["quoted_price"] is None
    (event,) = sink.of_type("quote_request")
    assert event["priority"] == "high"
    assert event["related_model"] == "QuotationRequest"
    assert event["related_id"] == quotation["id"]
    assert event["data"]["business_name"] == "Acme Pumps"
    assert event["data"]["specifications"] == "PN16"


def test_b2c_customers_cannot_request(quotes, sink, customer, make_product):
    with pytest.raises(ForbiddenError):
        quotes.request_quote(customer, _request(make_product()))
    assert sink.of_type("quote_request") == []


def test_pending_b2b_account_cannot_request(quotes, make_user, make_product):
    pending = make_user(customer_type="B2B", company="Acme", approval_status="pending")
    with pytest.raises(ForbiddenError):
        quotes.request_quote(pending, _request(make_product()))


def test_request_for_unknown_or_inactive_product(quotes, buyer, make_product):
    with pytest.raises(NotFoundError):
        quotes.request_quote(buyer, QuotationCreate(product_id=999, quantity=1))
    with pytest.raises(NotFoundError):
        quotes.request_quote(buyer, _request(make_product(status="inactive")))


def test_quantity_must_be_positive():
    with pytest.raises(ValueError):
        QuotationCreate(product_id=1, quantity=0)


def test_my_requests_are_own_and_newest_first(quotes, buyer, make_user, make_product):
    other = make_user(customer_type="B2B", company="Zenith", approval_status="approved")
    product = make_product()
    first = quotes.request_quote(buyer, _request(product, 10))
    second = quotes.request_quote(buyer, _request(product, 20))
    quotes.request_quote(other, _request(product, 30))

    mine = quotes.my_quotations(buyer)

    assert [q["id"] for q in mine] == [second["id"], first["id"]]


# -----------------------------------------------------
# admin side
# -----------------------------------------------------
def test_admin_list_filters_by_status(quotes, buyer, admin, make_product):
    product = make_product()
    a = quotes.request_quote(buyer, _request(product))
    quotes.request_quote(buyer, _request(product))
    quotes.respond(a["id"], QuotationRespondIn(status="rejected"), admin)

    pending = quotes.list_quotations(status="pending")
    everything = quotes.list_quotations(status="all", limit=1)

    assert pending["pagination"]["total"] == 1
    assert everything["pagination"]["total"] == 2
    assert everything["pagination"]["pages"] == 2
    assert len(everything["quotations"]) == 1


def test_admin_detail_flattens_customer_and_product(quotes, buyer, make_product):
    product = make_product(title="Check Valve")
    quotation = quotes.request_quote(buyer, _request(product, notes="Need by March"))

    detail = quotes.get_quotation(quotation["id"])

    assert detail["customer_name"] == buyer.name
    assert detail["customer_email"] == buyer.email
    assert detail["company"] == "Acme Pumps"
    assert detail["product_name"] == "Check Valve"
    assert detail["notes"] == "Need by March"
    with pytest.raises(NotFoundError):
        quotes.get_quotation(404)


def test_quote_with_explicit_unit_price(quotes, buyer, admin, make_product):
    quotation = quotes.request_quote(buyer, _request(make_product(price="100.00"), 50))

    quoted = quotes.respond(
        quotation["id"],
        QuotationRespondIn(status="quoted", unit_price=Decimal("82.50"), validity_days=10, admin_notes="Bulk"),
        admin,
    )

    assert quoted["status"] == "quoted"
    assert quoted["admin_notes"] == "Bulk"
    assert quoted["quoted_price"]["unit_price"] == Decimal("82.50")
    assert quoted["quoted_price"]["total_price"] == Decimal("4125.00")
    assert (quoted["quoted_price"]["valid_until"] - quoted["responded_at"]).days == 10


def test_approval_without_price_uses_list_price(quotes, buyer, admin, make_product):
    quotation = quotes.request_quote(buyer, _request(make_product(price="100.00", discount_price="90.00"), 3))

    approved = quotes.respond(quotation["id"], QuotationRespondIn(status="approved"), admin)

    assert approved["quoted_price"]["unit_price"] == Decimal("100.00")
    assert approved["quoted_price"]["total_price"] == Decimal("300.00")


def test_rejection_carries_no_price(quotes, buyer, admin, make_product):
    quotation = quotes.request_quote(buyer, _request(make_product()))

    rejected = quotes.respond(quotation["id"], QuotationRespondIn(status="rejected", admin_notes="No"), admin)

    assert rejected["status"] == "rejected"
    assert rejected["quoted_price"] is None


def test_priced_response_needs_a_price_once_product_is_gone(db, quotes, buyer, admin, make_product):
    quotation = quotes.request_quote(buyer, _request(make_product()))
    db.query(QuotationRequestModel).filter_by(id=quotation["id"]).update({"product_id": None})
    db.commit()

    with pytest.raises(ValidationFailed):
        quotes.respond(quotation["id"], QuotationRespondIn(status="quoted"), admin)

    assert quotes.get_quotation(quotation["id"])["status"] == "pending"


def test_invalid_status_is_rejected_by_schema():
    with pytest.raises(ValueError):
        QuotationRespondIn(status="accepted")


def test_respond_unknown_quotation(quotes, admin):
    with pytest.raises(NotFoundError):
        quotes.respond(404, QuotationRespondIn(status="rejected"), admin)


def test_expire_stale_only_touches_lapsed_priced_quotes(quotes, buyer, admin, make_product):
    product = make_product()
    quoted = quotes.request_quote(buyer, _request(product))
    pending = quotes.request_quote(buyer, _request(product))
    quotes.respond(quoted["id"], QuotationRespondIn(status="quoted", validity_days=7), admin)

    assert quotes.expire_stale() == 0
    assert quotes.expire_stale(now=utc_now() + timedelta(days=8)) == 1

    assert quotes.get_quotation(quoted["id"])["status"] == "expired"
    assert quotes.get_quotation(pending["id"])["status"] == "pending"


# -----------------------------------------------------
# http
# -----------------------------------------------------
def test_quotation_flow_over_http(client, buyer, customer, admin, make_product):
    product = make_product(price="250.00")
    body = {"product_id": product.id, "quantity": 4, "specifications": "Flanged"}

    created = client.post("/quotations/request", params={"user_id": buyer.id}, json=body)
    refused = client.post("/quotations/request", params={"user_id": customer.id}, json=body)
    quotation_id = created.json()["id"]

    assert created.status_code == 201
    assert refused.status_code == 403
    assert client.get("/quotations/admin/requests", params={"user_id": buyer.id}).status_code == 403

    listing = client.get("/quotations/admin/requests", params={"user_id": admin.id}).json()
    assert [q["id"] for q in listing["quotations"]] == [quotation_id]

    detail = client.get(f"/quotations/admin/requests/{quotation_id}", params={"user_id": admin.id})
    assert detail.json()["product_name"] == product.title

    responded = client.post(
        f"/quotations/admin/respond/{quotation_id}",
        params={"user_id": admin.id},
        json={"status": "quoted", "unit_price": "200.00"},
    )
    assert responded.status_code == 200
    assert float(responded.json()["quoted_price"]["total_price"]) == 800.0

    mine = client.get("/quotations/my-requests", params={"user_id": buyer.id}).json()
    assert mine[0]["status"] == "quoted"


def test_unknown_quotation_is_404_over_http(client, admin):
    response = client.get("/quotations/admin/requests/999", params={"user_id": admin.id})
    assert response.status_code == 404
