"""API tests through the ASGI app with an in-memory database."""

from decimal import Decimal
from uuid import uuid4

from tests.factories import ORG_ID, OTHER_ORG_ID, new_employee

RUNS = f"/api/v1/organizations/{ORG_ID}/payroll-runs"


def run_payload(employees, **overrides):
    payload = {
        "cutoff_start": "2025-01-01",
        "cutoff_end": "2025-01-15",
        "employee_ids": [str(e.employee_id) for e in employees.values()],
    }
    payload.update(overrides)
    return payload


async def create_run(client, employees, **overrides) -> dict:
    response = await client.post(RUNS, json=run_payload(employees, **overrides))
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "healthy"

    async def test_ready_and_live(self, client):
        assert (await client.get("/ready")).json() == {"status": "ready"}
        assert (await client.get("/live")).json() == {"status": "alive"}


class TestPayrollRunEndpoints:
    """Create, read and list payroll runs."""

    async def test_create_and_get(self, client, committed_employees):
        created = await create_run(client, committed_employees)

        assert created["status"] == "draft"
        assert created["period"] == "Jan 1 - Jan 15, 2025"
        assert created["processed_at"] is None

        response = await client.get(f"{RUNS}/{created['payroll_run_id']}")
        assert response.status_code == 200
        assert response.json()["payroll_run_id"] == created["payroll_run_id"]

    async def test_list_with_status_filter(self, client, committed_employees):
        created = await create_run(client, committed_employees)

        all_runs = (await client.get(RUNS)).json()
        finalized = (await client.get(RUNS, params={"status": "finalized"})).json()

        assert all_runs["total"] == 1
        assert all_runs["items"][0]["payroll_run_id"] == created["payroll_run_id"]
        assert finalized == {"items": [], "total": 0}

    async def test_payslips(self, client, committed_employees):
        created = await create_run(client, committed_employees)

        response = await client.get(f"{RUNS}/{created['payroll_run_id']}/payslips")

        body = response.json()
        assert body["total"] == 2
        net = {item["employee_id"]: Decimal(item["net_pay"]) for item in body["items"]}
        assert net[str(committed_employees["monthly"].employee_id)] == Decimal("7780.46")
        assert net[str(committed_employees["daily"].employee_id)] == Decimal("401.50")

    async def test_empty_employee_list(self, client, committed_employees):
        response = await client.post(RUNS, json=run_payload(committed_employees, employee_ids=[]))

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert (await client.get(RUNS)).json()["total"] == 0

    async def test_negative_incentive_rejected(self, client, committed_employees):
        employee_id = str(committed_employees["monthly"].employee_id)
        payload = run_payload(
            committed_employees,
            incentives=[
                {"employee_id": employee_id, "incentives": [{"name": "Bonus", "amount": "-5"}]}
            ],
        )

        response = await client.post(RUNS, json=payload)

        assert response.status_code == 422

    async def test_computation_error(self, client, committed_employees, session_factory):
        broken = new_employee("No Schedule", {"salary_type": "monthly", "basic_salary": "15000"})
        async with session_factory() as session:
            session.add(broken)
            await session.commit()

        response = await client.post(
            RUNS, json=run_payload(committed_employees, employee_ids=[str(broken.employee_id)])
        )

        assert response.status_code == 422
        assert response.json()["code"] == "COMPUTATION_ERROR"
        assert (await client.get(RUNS)).json()["total"] == 0

    async def test_unknown_employee(self, client, committed_employees):
        response = await client.post(
            RUNS, json=run_payload(committed_employees, employee_ids=[str(uuid4())])
        )

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_other_organization_cannot_read(self, client, committed_employees):
        created = await create_run(client, committed_employees)

        response = await client.get(
            f"/api/v1/organizations/{OTHER_ORG_ID}/payroll-runs/{created['payroll_run_id']}"
        )

        assert response.status_code == 404


class TestLifecycleEndpoints:
    """Status transitions, notes and delete."""

    async def test_draft_to_paid_conflict(self, client, committed_employees):
        created = await create_run(client, committed_employees)
        url = f"{RUNS}/{created['payroll_run_id']}"

        response = await client.post(f"{url}/status", json={"status": "paid"})

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_TRANSITION"
        assert (await client.get(url)).json()["status"] == "draft"

    async def test_finalize_and_cost_items(self, client, committed_employees):
        created = await create_run(client, committed_employees)
        url = f"{RUNS}/{created['payroll_run_id']}"

        response = await client.post(f"{url}/status", json={"status": "finalized"})
        assert response.status_code == 200
        assert response.json()["processed_at"] is not None

        items = (await client.get(f"{url}/cost-items")).json()
        amounts = {item["name"]: Decimal(item["amount"]) for item in items["items"]}
        assert items["total"] == 4
        assert amounts["Payroll - Jan 1 - Jan 15, 2025"] == Decimal("11600.00")

        csv_response = await client.get(f"{url}/cost-items.csv")
        assert csv_response.text.startswith("Name,Category,Amount")

    async def test_edit_after_finalize_conflict(self, client, committed_employees):
        created = await create_run(client, committed_employees)
        url = f"{RUNS}/{created['payroll_run_id']}"
        await client.post(f"{url}/status", json={"status": "finalized"})

        response = await client.patch(url, json={"deductions_enabled": False})

        assert response.status_code == 409
        assert response.json()["code"] == "INVALID_STATE"

    async def test_archive(self, client, committed_employees):
        created = await create_run(client, committed_employees)
        url = f"{RUNS}/{created['payroll_run_id']}"
        await client.post(f"{url}/status", json={"status": "finalized"})

        response = await client.post(f"{url}/archive")

        assert response.json()["status"] == "archived"
        assert (await client.get(f"{url}/cost-items")).json()["total"] == 0
        assert (await client.get(f"{url}/payslips")).json()["total"] == 2

    async def test_add_note(self, client, committed_employees):
        created = await create_run(client, committed_employees)
        url = f"{RUNS}/{created['payroll_run_id']}"

        response = await client.post(f"{url}/notes", json={"note": "Reviewed", "author": "hr"})

        assert response.status_code == 200
        assert response.json()["notes"][0]["note"] == "Reviewed"

    async def test_delete_requires_confirm(self, client, committed_employees):
        created = await create_run(client, committed_employees)
        url = f"{RUNS}/{created['payroll_run_id']}"

        response = await client.delete(url)
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

        response = await client.delete(url, params={"confirm": "true"})
        assert response.status_code == 204
        assert (await client.get(url)).status_code == 404


class TestSummaryEndpoints:
    async def test_summary(self, client, committed_employees):
        created = await create_run(client, committed_employees)

        response = await client.get(f"{RUNS}/{created['payroll_run_id']}/summary")

        body = response.json()
        assert response.status_code == 200
        assert len(body["dates"]) == 15
        assert [e["name"] for e in body["employees"]] == ["Maria Santos", "Jose Reyes"]

    async def test_export_csv(self, client, committed_employees):
        created = await create_run(client, committed_employees)

        response = await client.get(f"{RUNS}/{created['payroll_run_id']}/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "payroll-summary-Jan-1---Jan-15,-2025.csv" in response.headers[
            "content-disposition"
        ]
        assert response.text.startswith("Employee,Jan 01,Jan 02,")


class TestPreviewEndpoint:
    async def test_preview(self, client, committed_employees):
        employee_id = committed_employees["monthly"].employee_id

        response = await client.post(
            f"/api/v1/organizations/{ORG_ID}/employees/{employee_id}/payroll-preview",
            json={"cutoff_start": "2025-01-01", "cutoff_end": "2025-01-15"},
        )

        body = response.json()
        assert response.status_code == 200
        assert Decimal(body["net_pay"]) == Decimal("7780.46")
        assert Decimal(body["deductions"]["sss"]) == Decimal("900")
        assert [line["name"] for line in body["deduction_lines"]] == [
            "SSS",
            "PhilHealth",
            "Pag-IBIG",
            "Absent (1 day)",
        ]

    async def test_preview_other_organization(self, client, committed_employees):
        employee_id = committed_employees["monthly"].employee_id

        response = await client.post(
            f"/api/v1/organizations/{OTHER_ORG_ID}/employees/{employee_id}/payroll-preview",
            json={"cutoff_start": "2025-01-01", "cutoff_end": "2025-01-15"},
        )

        assert response.status_code == 404
