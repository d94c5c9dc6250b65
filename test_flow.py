import httpx
import asyncio
import uuid
from app.middleware.auth import create_access_token


BASE_URL = "http://localhost:8000"


async def safe_request(resp: httpx.Response, step: str):
    """Print response + fail loudly if error"""
    print(f"{step}: {resp.status_code}")

    try:
        print(resp.json())
    except Exception:
        print(resp.text)

    resp.raise_for_status()


async def wait_for_status(client, reservation_id, headers, wanted, attempts=10):
    """Background handlers run after the response; poll until they land."""
    for _ in range(attempts):
        resp = await client.get(f"{BASE_URL}/v1/reservations/{reservation_id}", headers=headers)
        await safe_request(resp, "Get Reservation")
        if resp.json()["status"] == wanted:
            return resp.json()
        await asyncio.sleep(0.5)
    raise Exception(f"Reservation {reservation_id} never reached {wanted}")


async def main():

    async with httpx.AsyncClient(timeout=30.0) as client:

        # ---------------------------------------------------
        print("\n1️⃣ Checking Health...")
        resp = await client.get(f"{BASE_URL}/health")
        await safe_request(resp, "Health")

        # ---------------------------------------------------
        print("\n2️⃣ Registering Driver...")

        driver_payload = {
            "name": "Test Driver",
            "phone": f"+22177{uuid.uuid4().int % 10000000:07d}",
            "balance": "5000",
        }

        resp = await client.post(f"{BASE_URL}/v1/drivers", json=driver_payload)
        await safe_request(resp, "Register Driver")
        driver_id = resp.json()["id"]

        # ---------------------------------------------------
        print("\n3️⃣ Generating Token...")

        operator_token = create_access_token({"sub": "ops@dispatch.local"})
        headers = {"Authorization": f"Bearer {operator_token}"}

        # ---------------------------------------------------
        print("\n4️⃣ Driver goes online...")
        resp = await client.patch(
            f"{BASE_URL}/v1/drivers/{driver_id}/status",
            json={"status": "available"},
        )
        await safe_request(resp, "Driver Online")

        # ---------------------------------------------------
        print("\n5️⃣ Driver sends location...")
        resp = await client.post(
            f"{BASE_URL}/v1/drivers/{driver_id}/location",
            json={"lat": 14.6950, "lng": -17.4440, "speed": 6.0},
        )
        await safe_request(resp, "Send Location")

        # ---------------------------------------------------
        print("\n6️⃣ Client books a ride...")

        reservation_payload = {
            "origin_address": "Plateau, Place de l'Indépendance",
            "origin_lat": 14.6928,
            "origin_lng": -17.4467,
            "destination_address": "Almadies",
            "destination_lat": 14.7247,
            "destination_lng": -17.5050,
            "client_name": "Smoke Test",
            "estimated_price": "2500 FCFA",
        }

        resp = await client.post(
            f"{BASE_URL}/v1/reservations",
            json=reservation_payload,
            headers={**headers, "Idempotency-Key": str(uuid.uuid4())},
        )
        await safe_request(resp, "Create Reservation")
        reservation_id = resp.json()["id"]

        # ---------------------------------------------------
        print("\n7️⃣ Waiting for automatic assignment...")
        reservation = await wait_for_status(client, reservation_id, headers, "assigned")
        if reservation["assigned_driver_id"] != driver_id:
            raise Exception("Reservation went to another driver")

        # ---------------------------------------------------
        print("\n8️⃣ Completing ride...")
        resp = await client.post(
            f"{BASE_URL}/v1/reservations/{reservation_id}/complete",
            json={"driver_id": driver_id},
            headers=headers,
        )
        await safe_request(resp, "Complete Ride")

        # ---------------------------------------------------
        print("\n9️⃣ Validating payment...")
        resp = await client.post(
            f"{BASE_URL}/v1/reservations/{reservation_id}/payment",
            headers=headers,
        )
        await safe_request(resp, "Payment")

        await asyncio.sleep(1)
        resp = await client.get(f"{BASE_URL}/v1/reservations/{reservation_id}", headers=headers)
        await safe_request(resp, "Settled Reservation")
        if not resp.json()["driver_credited"]:
            raise Exception("Driver was not credited")

        print("\n✅ FLOW COMPLETED SUCCESSFULLY")


if __name__ == "__main__":
    asyncio.run(main())
