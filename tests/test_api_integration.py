"""
Integration tests for the Credit Module API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
from datetime import date
from fastapi.testclient import TestClient

from credit_module.api import app
from credit_module.api.auth import CreditSystem, get_credit_system
from credit_module.config import CreditModuleConfig
from credit_module.schedule import add_months, first_due_date


ADMIN_PASSWORD = "admin-pass"


def make_system(**overrides) -> CreditSystem:
    settings = dict(
        database_url="memory://",
        jwt_secret="test-secret",
        bootstrap_admin_username="admin",
        bootstrap_admin_password=ADMIN_PASSWORD,
    )
    settings.update(overrides)
    return CreditSystem(CreditModuleConfig(**settings))


@pytest.fixture
def system():
    return make_system()


@pytest.fixture
def client(system):
    """Test client wired to an isolated in-memory credit system"""
    app.dependency_overrides[get_credit_system] = lambda: system
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, username, password):
    r = client.post("/auth/login", json={"username": username, "password": password})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def admin_headers(client):
    return login(client, "admin", ADMIN_PASSWORD)


def create_customer(client, headers, name="Ayse", surname="Yilmaz", credit_limit="50000"):
    r = client.post("/api/customers", json={
        "name": name,
        "surname": surname,
        "credit_limit": credit_limit
    }, headers=headers)
    assert r.status_code == 201
    return r.json()["id"]


def create_customer_user(client, admin_headers, username, customer_id):
    r = client.post("/auth/users", json={
        "username": username,
        "password": f"{username}-pass",
        "role": "CUSTOMER",
        "customer_id": customer_id
    }, headers=admin_headers)
    assert r.status_code == 201
    return login(client, username, f"{username}-pass")


def create_loan(client, headers, customer_id, amount="1000", interest_rate="0.2", installments=6):
    return client.post("/api/loans/create", params={
        "customer_id": customer_id,
        "amount": amount,
        "interest_rate": interest_rate,
        "installments": installments
    }, headers=headers)


def payable_count_today(installments):
    """Installments of a loan created today that fall inside the payable window"""
    today = date.today()
    first = first_due_date(today)
    cutoff = add_months(today, 3)
    return sum(1 for k in range(installments) if add_months(first, k) < cutoff)


class TestHealthEndpoints:
    """Test basic health endpoint"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"


class TestAuthentication:
    """Test login and token handling"""

    def test_login(self, client):
        r = client.post("/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
        assert r.status_code == 200
        data = r.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"

    def test_login_wrong_password(self, client):
        r = client.post("/auth/login", json={"username": "admin", "password": "wrong"})
        assert r.status_code == 401

    def test_missing_token(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        r = client.get("/api/loans/list", params={"customer_id": customer_id})
        assert r.status_code == 401

    def test_invalid_token(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        r = client.get(
            "/api/loans/list",
            params={"customer_id": customer_id},
            headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert r.status_code == 401

    def test_token_signed_with_other_secret(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        other = make_system(jwt_secret="other-secret")
        token = other.issue_token(other.user_store.find_by_username("admin"))

        r = client.get(
            "/api/loans/list",
            params={"customer_id": customer_id},
            headers={"Authorization": f"Bearer {token}"}
        )
        assert r.status_code == 401


class TestUserAdministration:
    """Test user creation through the API"""

    def test_non_admin_cannot_create_users(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        headers = create_customer_user(client, admin_headers, "ayse", customer_id)

        r = client.post("/auth/users", json={
            "username": "intruder", "password": "x", "role": "ADMIN"
        }, headers=headers)
        assert r.status_code == 403

    def test_customer_user_for_unknown_customer(self, client, admin_headers):
        r = client.post("/auth/users", json={
            "username": "ghost", "password": "ghost-pass",
            "role": "CUSTOMER", "customer_id": "missing"
        }, headers=admin_headers)
        assert r.status_code == 404

    def test_customer_user_without_customer(self, client, admin_headers):
        r = client.post("/auth/users", json={
            "username": "ghost", "password": "ghost-pass", "role": "CUSTOMER"
        }, headers=admin_headers)
        assert r.status_code == 400

    def test_duplicate_username(self, client, admin_headers):
        r = client.post("/auth/users", json={
            "username": "admin", "password": "x", "role": "ADMIN"
        }, headers=admin_headers)
        assert r.status_code == 400


class TestCustomerEndpoints:
    """Test customer management endpoints"""

    def test_create_and_get_customer(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers, credit_limit="50000.00")

        r = client.get(f"/api/customers/{customer_id}", headers=admin_headers)
        assert r.status_code == 200
        data = r.json()
        assert data["name"] == "Ayse"
        assert data["credit_limit"] == "50000.00"
        assert data["used_credit_limit"] == "0"

    def test_invalid_credit_limit(self, client, admin_headers):
        r = client.post("/api/customers", json={
            "name": "Ayse", "surname": "Yilmaz", "credit_limit": "lots"
        }, headers=admin_headers)
        assert r.status_code == 400

    def test_negative_credit_limit(self, client, admin_headers):
        r = client.post("/api/customers", json={
            "name": "Ayse", "surname": "Yilmaz", "credit_limit": "-10"
        }, headers=admin_headers)
        assert r.status_code == 400

    @pytest.mark.parametrize("limit", ["Infinity", "NaN"])
    def test_non_finite_credit_limit(self, client, admin_headers, limit):
        r = client.post("/api/customers", json={
            "name": "Ayse", "surname": "Yilmaz", "credit_limit": limit
        }, headers=admin_headers)
        assert r.status_code == 400

    def test_get_unknown_customer(self, client, admin_headers):
        r = client.get("/api/customers/missing", headers=admin_headers)
        assert r.status_code == 404

    def test_customer_sees_only_own_record(self, client, admin_headers):
        own = create_customer(client, admin_headers)
        other = create_customer(client, admin_headers, name="Mehmet", surname="Kaya")
        headers = create_customer_user(client, admin_headers, "ayse", own)

        assert client.get(f"/api/customers/{own}", headers=headers).status_code == 200
        assert client.get(f"/api/customers/{other}", headers=headers).status_code == 403


class TestLoanFlow:
    """End-to-end loan tests"""

    def test_create_loan(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)

        r = create_loan(client, admin_headers, customer_id, amount="10000", installments=12)
        assert r.status_code == 200
        assert r.json() == {"message": "Loan created successfully"}

        loans = client.get("/api/loans/list", params={"customer_id": customer_id}, headers=admin_headers).json()
        assert len(loans) == 1
        assert loans[0]["loan_amount"] == "12000.0"
        assert loans[0]["number_of_installments"] == 12
        assert loans[0]["is_paid"] is False

        customer = client.get(f"/api/customers/{customer_id}", headers=admin_headers).json()
        assert customer["used_credit_limit"] == "12000.0"

    def test_list_installments(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        create_loan(client, admin_headers, customer_id, amount="10000", installments=12)
        loan_id = client.get(
            "/api/loans/list", params={"customer_id": customer_id}, headers=admin_headers
        ).json()[0]["id"]

        r = client.get(f"/api/loans/{loan_id}/installments", headers=admin_headers)
        assert r.status_code == 200
        installments = r.json()
        assert len(installments) == 12
        assert all(i["amount"] == "1000.00" for i in installments)
        assert installments[0]["due_date"] == first_due_date(date.today()).isoformat()
        assert all(i["is_paid"] is False and i["payment_date"] is None for i in installments)

    def test_interest_rate_out_of_range(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        r = create_loan(client, admin_headers, customer_id, interest_rate="0.6")
        assert r.status_code == 400

    def test_installment_count_not_allowed(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        r = create_loan(client, admin_headers, customer_id, installments=7)
        assert r.status_code == 400

    def test_insufficient_credit(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers, credit_limit="5000")

        r = create_loan(client, admin_headers, customer_id, amount="10000")
        assert r.status_code == 400
        assert r.json()["detail"] == "Insufficient credit limit"

        loans = client.get("/api/loans/list", params={"customer_id": customer_id}, headers=admin_headers).json()
        assert loans == []

    def test_unknown_customer(self, client, admin_headers):
        r = create_loan(client, admin_headers, "missing")
        assert r.status_code == 404

    def test_non_numeric_amount(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        r = create_loan(client, admin_headers, customer_id, amount="lots")
        assert r.status_code == 422


class TestPaymentFlow:
    """End-to-end payment tests"""

    @pytest.fixture
    def loan_id(self, client, admin_headers):
        customer_id = create_customer(client, admin_headers)
        create_loan(client, admin_headers, customer_id, amount="1000", installments=6)
        return client.get(
            "/api/loans/list", params={"customer_id": customer_id}, headers=admin_headers
        ).json()[0]["id"]

    def test_pay_covers_payable_window(self, client, admin_headers, loan_id):
        r = client.post("/api/loans/pay", params={"loan_id": loan_id, "payment_amount": "100000"}, headers=admin_headers)
        assert r.status_code == 200
        data = r.json()

        expected = payable_count_today(6)
        assert data["paid_installments"] == expected
        assert data["loan_paid"] is False
        assert data["message"].startswith(f"Paid {expected} installments")

        installments = client.get(f"/api/loans/{loan_id}/installments", headers=admin_headers).json()
        assert [i["is_paid"] for i in installments] == [True] * expected + [False] * (6 - expected)
        assert installments[0]["payment_date"] == date.today().isoformat()

    def test_underpayment_pays_nothing(self, client, admin_headers, loan_id):
        r = client.post("/api/loans/pay", params={"loan_id": loan_id, "payment_amount": "1"}, headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["paid_installments"] == 0

    def test_non_positive_payment(self, client, admin_headers, loan_id):
        r = client.post("/api/loans/pay", params={"loan_id": loan_id, "payment_amount": "0"}, headers=admin_headers)
        assert r.status_code == 400

    def test_unknown_loan(self, client, admin_headers):
        r = client.post("/api/loans/pay", params={"loan_id": "missing", "payment_amount": "100"}, headers=admin_headers)
        assert r.status_code == 404


class TestCustomerAccess:
    """Test that customer users only reach their own loans"""

    @pytest.fixture
    def setup(self, client, admin_headers):
        ayse = create_customer(client, admin_headers)
        mehmet = create_customer(client, admin_headers, name="Mehmet", surname="Kaya")
        create_loan(client, admin_headers, mehmet, amount="1000")
        mehmet_loan = client.get(
            "/api/loans/list", params={"customer_id": mehmet}, headers=admin_headers
        ).json()[0]["id"]
        headers = create_customer_user(client, admin_headers, "ayse", ayse)
        return {"ayse": ayse, "mehmet": mehmet, "mehmet_loan": mehmet_loan, "headers": headers}

    def test_customer_manages_own_loans(self, client, setup):
        headers = setup["headers"]

        r = create_loan(client, headers, setup["ayse"])
        assert r.status_code == 200

        loans = client.get("/api/loans/list", params={"customer_id": setup["ayse"]}, headers=headers).json()
        assert len(loans) == 1

        r = client.post("/api/loans/pay", params={"loan_id": loans[0]["id"], "payment_amount": "100000"}, headers=headers)
        assert r.status_code == 200

    def test_customer_denied_other_customers_loans(self, client, setup):
        headers = setup["headers"]

        assert create_loan(client, headers, setup["mehmet"]).status_code == 403
        assert client.get(
            "/api/loans/list", params={"customer_id": setup["mehmet"]}, headers=headers
        ).status_code == 403
        assert client.get(
            f"/api/loans/{setup['mehmet_loan']}/installments", headers=headers
        ).status_code == 403
        assert client.post(
            "/api/loans/pay", params={"loan_id": setup["mehmet_loan"], "payment_amount": "100"}, headers=headers
        ).status_code == 403

    def test_customer_cannot_create_customers(self, client, setup):
        r = client.post("/api/customers", json={
            "name": "X", "surname": "Y", "credit_limit": "1000000"
        }, headers=setup["headers"])
        assert r.status_code == 403


class TestAuthDisabled:
    """Test the API with authentication switched off"""

    def test_routes_open_without_token(self):
        system = make_system(auth_enabled=False)
        app.dependency_overrides[get_credit_system] = lambda: system
        try:
            client = TestClient(app)
            customer = system.customer_store.create_customer("Ayse", "Yilmaz", "50000")

            r = create_loan(client, {}, customer.id)
            assert r.status_code == 200
            assert len(client.get("/api/loans/list", params={"customer_id": customer.id}).json()) == 1
        finally:
            app.dependency_overrides.clear()
