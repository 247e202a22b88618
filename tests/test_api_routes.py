"""
API route tests

Covers:
- Flights (list, get, search, price, attempts, seat map)
- Bookings (create, list, get, cancel, ticket, idempotent retry)
- Wallet (read, add funds, withdraw, transfer, transactions)
- Error payloads, health and metrics
"""
import pytest

from flight_booking.core.clock import utcnow

API = "/api/v1"


def booking_payload(flight_id, **overrides):
    payload = {
        "flightId": flight_id,
        "passengerName": "Priya Sharma",
        "passengerEmail": "priya.sharma@gmail.com",
        "passengerPhone": "+91 98200 00000",
        "journeyDate": utcnow().date().isoformat(),
    }
    payload.update(overrides)
    return payload


# ============================================================================
# FLIGHT TESTS
# ============================================================================
class TestFlightRoutes:
    """Test flight and pricing endpoints"""

    @pytest.mark.asyncio
    async def test_list_flights(self, client, make_flight):
        await make_flight(flight_number="AI101")
        await make_flight(flight_number="SG202")

        response = await client.get(f"{API}/flights")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {f["flightNumber"] for f in data["flights"]} == {"AI101", "SG202"}

    @pytest.mark.asyncio
    async def test_get_flight(self, client, make_flight):
        flight = await make_flight(base_price=2800)

        response = await client.get(f"{API}/flights/{flight.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["basePrice"] == 2800
        assert data["currentPrice"] == 2800
        assert data["isSurgePricing"] is False

    @pytest.mark.asyncio
    async def test_get_flight_not_found(self, client):
        response = await client.get(f"{API}/flights/99999")

        assert response.status_code == 404
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "not_found"
        assert "not found" in data["message"].lower()

    @pytest.mark.asyncio
    async def test_three_attempts_surge_the_price(self, client, make_flight):
        flight = await make_flight(base_price=2500)

        for _ in range(3):
            response = await client.post(f"{API}/flights/{flight.id}/attempt", params={"user_id": 1})
            assert response.status_code == 200

        snapshot = response.json()
        assert snapshot == {
            "flightId": flight.id,
            "currentPrice": 2750,
            "basePrice": 2500,
            "lastPriceUpdate": snapshot["lastPriceUpdate"],
        }

        quote = (await client.get(f"{API}/flights/{flight.id}/price")).json()
        assert quote["currentPrice"] == 2750
        assert quote["isSurgePricing"] is True

    @pytest.mark.asyncio
    async def test_attempt_requires_user(self, client, make_flight):
        flight = await make_flight()

        response = await client.post(f"{API}/flights/{flight.id}/attempt")

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_search(self, client, make_flight):
        flight = await make_flight(departure_city="Mumbai", arrival_city="Delhi")
        await make_flight(departure_city="Mumbai", arrival_city="Chennai")
        await make_flight(departure_city="Mumbai", arrival_city="Delhi", available_seats=1)

        response = await client.get(f"{API}/flights/search", params={
            "departure": "mumbai",
            "arrival": "DEL",
            "date": flight.departure_time.date().isoformat(),
            "passengers": 2,
        })

        assert response.status_code == 200
        data = response.json()
        assert [f["id"] for f in data["flights"]] == [flight.id]

    @pytest.mark.asyncio
    async def test_seat_map(self, client, make_flight):
        flight = await make_flight(total_seats=12)
        await client.post(
            f"{API}/bookings", params={"user_id": 1},
            json=booking_payload(flight.id, seatNumbers=["1A", "2F"]),
        )

        response = await client.get(
            f"{API}/flights/{flight.id}/seats",
            params={"journeyDate": utcnow().date().isoformat()},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["available"] == 10
        held = [s["seatNumber"] for s in data["seats"] if not s["isAvailable"]]
        assert held == ["1A", "2F"]


# ============================================================================
# BOOKING TESTS
# ============================================================================
class TestBookingRoutes:
    """Test booking endpoints"""

    @pytest.mark.asyncio
    async def test_create_booking(self, client, make_flight):
        flight = await make_flight(base_price=2500)

        response = await client.post(
            f"{API}/bookings", params={"user_id": 1},
            json=booking_payload(flight.id, passengerCount=2),
        )

        assert response.status_code == 201
        data = response.json()
        assert len(data["pnr"]) == 6
        assert data["status"] == "confirmed"
        assert data["seatNumbers"] == ["1A", "1B"]
        assert data["amountPaid"] == 5750
        assert data["flight"]["flightNumber"] == flight.flight_number

        wallet = (await client.get(f"{API}/wallet", params={"user_id": 1})).json()
        assert wallet["balance"] == 44250

    @pytest.mark.asyncio
    async def test_count_and_seats_must_agree(self, client, make_flight):
        flight = await make_flight()

        response = await client.post(
            f"{API}/bookings", params={"user_id": 1},
            json=booking_payload(flight.id, seatNumbers=["1A"], passengerCount=2),
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_duplicate_seats_rejected(self, client, make_flight):
        flight = await make_flight()

        response = await client.post(
            f"{API}/bookings", params={"user_id": 1},
            json=booking_payload(flight.id, seatNumbers=["1A", "1a"]),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_insufficient_funds_payload(self, client, make_flight):
        flight = await make_flight(base_price=60000)

        response = await client.post(
            f"{API}/bookings", params={"user_id": 1}, json=booking_payload(flight.id),
        )

        assert response.status_code == 402
        data = response.json()
        assert data["error"] == "insufficient_funds"
        assert data["detail"] == {"required": 69000, "available": 50000}

    @pytest.mark.asyncio
    async def test_seat_conflict(self, client, make_flight):
        flight = await make_flight()
        await client.post(
            f"{API}/bookings", params={"user_id": 1},
            json=booking_payload(flight.id, seatNumbers=["4C"]),
        )

        response = await client.post(
            f"{API}/bookings", params={"user_id": 2},
            json=booking_payload(flight.id, seatNumbers=["4C"]),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "seat_conflict"

    @pytest.mark.asyncio
    async def test_sold_out(self, client, make_flight):
        flight = await make_flight(total_seats=100, available_seats=0)

        response = await client.post(
            f"{API}/bookings", params={"user_id": 1}, json=booking_payload(flight.id),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "insufficient_inventory"

    @pytest.mark.asyncio
    async def test_list_get_and_ticket(self, client, make_flight):
        flight = await make_flight()
        created = (await client.post(
            f"{API}/bookings", params={"user_id": 1}, json=booking_payload(flight.id),
        )).json()

        listing = (await client.get(f"{API}/bookings", params={"user_id": 1})).json()
        assert listing["total"] == 1
        assert listing["bookings"][0]["pnr"] == created["pnr"]

        single = await client.get(f"{API}/bookings/{created['id']}", params={"user_id": 1})
        assert single.status_code == 200

        ticket = (await client.get(f"{API}/bookings/{created['id']}/ticket", params={"user_id": 1})).json()
        assert ticket["pnr"] == created["pnr"]
        assert ticket["seatNumbers"] == created["seatNumbers"]

    @pytest.mark.asyncio
    async def test_other_users_booking_is_forbidden(self, client, make_flight):
        flight = await make_flight()
        created = (await client.post(
            f"{API}/bookings", params={"user_id": 1}, json=booking_payload(flight.id),
        )).json()

        response = await client.get(f"{API}/bookings/{created['id']}", params={"user_id": 2})
        assert response.status_code == 403

        response = await client.put(f"{API}/bookings/{created['id']}/cancel", params={"user_id": 2})
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_cancel_booking(self, client, make_flight):
        flight = await make_flight(base_price=2500)
        created = (await client.post(
            f"{API}/bookings", params={"user_id": 1}, json=booking_payload(flight.id),
        )).json()

        response = await client.put(f"{API}/bookings/{created['id']}/cancel", params={"user_id": 1})

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}

        wallet = (await client.get(f"{API}/wallet", params={"user_id": 1})).json()
        assert wallet["balance"] == 50000 - 2875 + 2588
        assert wallet["transactions"][0]["description"] == \
            f"Refund for cancelled booking - PNR: {created['pnr']}"

        flight_data = (await client.get(f"{API}/flights/{flight.id}")).json()
        assert flight_data["availableSeats"] == 100

        again = await client.put(f"{API}/bookings/{created['id']}/cancel", params={"user_id": 1})
        assert again.status_code == 409
        assert again.json()["error"] == "already_cancelled"

        cancelled = (await client.get(
            f"{API}/bookings", params={"user_id": 1, "status": "cancelled"},
        )).json()
        assert cancelled["total"] == 1

    @pytest.mark.asyncio
    async def test_idempotency_key_without_redis_still_books(self, client, make_flight):
        flight = await make_flight()

        response = await client.post(
            f"{API}/bookings", params={"user_id": 1},
            json=booking_payload(flight.id),
            headers={"X-Idempotency-Key": "retry-1"},
        )

        assert response.status_code == 201


# ============================================================================
# WALLET TESTS
# ============================================================================
class TestWalletRoutes:
    """Test wallet endpoints"""

    @pytest.mark.asyncio
    async def test_new_wallet(self, client):
        response = await client.get(f"{API}/wallet", params={"user_id": 5})

        assert response.status_code == 200
        assert response.json() == {"userId": 5, "balance": 50000, "transactions": []}

    @pytest.mark.asyncio
    async def test_add_funds_and_withdraw(self, client):
        response = await client.post(f"{API}/wallet/add-funds", params={"user_id": 1}, json={"amount": 1000})
        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == 51000
        assert data["transaction"]["kind"] == "credit"

        response = await client.post(f"{API}/wallet/withdraw", params={"user_id": 1}, json={"amount": 400})
        assert response.json()["balance"] == 50600
        assert response.json()["transaction"]["amount"] == -400

    @pytest.mark.asyncio
    async def test_invalid_amount(self, client):
        response = await client.post(f"{API}/wallet/add-funds", params={"user_id": 1}, json={"amount": 0})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_overdraft(self, client):
        response = await client.post(f"{API}/wallet/withdraw", params={"user_id": 1}, json={"amount": 50001})

        assert response.status_code == 402
        assert response.json()["detail"]["available"] == 50000

    @pytest.mark.asyncio
    async def test_transfer(self, client):
        response = await client.post(
            f"{API}/wallet/transfer", params={"user_id": 1}, json={"amount": 2500, "recipientId": 2},
        )

        assert response.status_code == 200
        assert response.json()["balance"] == 47500
        recipient = (await client.get(f"{API}/wallet", params={"user_id": 2})).json()
        assert recipient["balance"] == 52500

    @pytest.mark.asyncio
    async def test_transfer_to_self(self, client):
        response = await client.post(
            f"{API}/wallet/transfer", params={"user_id": 1}, json={"amount": 100, "recipientId": 1},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_transactions(self, client):
        await client.post(f"{API}/wallet/add-funds", params={"user_id": 1}, json={"amount": 10})
        await client.post(f"{API}/wallet/add-funds", params={"user_id": 1}, json={"amount": 20})

        data = (await client.get(f"{API}/wallet/transactions", params={"user_id": 1})).json()

        assert data["total"] == 2
        assert [t["amount"] for t in data["transactions"]] == [20, 10]


# ============================================================================
# SERVICE ENDPOINTS
# ============================================================================
class TestServiceRoutes:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Trace-ID" in response.headers

    @pytest.mark.asyncio
    async def test_trace_id_is_echoed(self, client):
        response = await client.get("/health", headers={"X-Trace-ID": "trace-abc"})

        assert response.headers["X-Trace-ID"] == "trace-abc"

    @pytest.mark.asyncio
    async def test_metrics(self, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "bookings_created_total" in response.text
