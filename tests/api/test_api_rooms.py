"""
Public room catalogue and availability
"""
import uuid
from datetime import timedelta

from fastapi.testclient import TestClient

from app.models.review import Review


class TestListRooms:
    """GET /api/rooms"""

    def test_lists_only_available_rooms(self, client: TestClient, make_room):
        make_room("101")
        make_room("102", is_available=False)
        resp = client.get("/api/rooms")
        assert resp.status_code == 200
        numbers = [r["roomNumber"] for r in resp.json()]
        assert numbers == ["101"]

    def test_filter_by_category_and_price(self, client: TestClient, make_room):
        make_room("101", category="Standard", price=80)
        make_room("201", category="Suite", price=250)
        make_room("202", category="Suite", price=400)
        resp = client.get("/api/rooms", params={"category": "Suite", "maxPrice": 300})
        assert [r["roomNumber"] for r in resp.json()] == ["201"]
        resp = client.get("/api/rooms", params={"minPrice": 100})
        assert {r["roomNumber"] for r in resp.json()} == {"201", "202"}

    def test_filter_by_amenities_requires_all(self, client: TestClient, make_room):
        make_room("101", amenities=["WiFi", "TV"])
        make_room("102", amenities=["WiFi", "TV", "Jacuzzi"])
        resp = client.get("/api/rooms", params={"amenities": "TV,Jacuzzi"})
        assert [r["roomNumber"] for r in resp.json()] == ["102"]

    def test_pagination(self, client: TestClient, make_room):
        for n in range(5):
            make_room(f"10{n}")
        resp = client.get("/api/rooms", params={"limit": 2, "offset": 1})
        assert len(resp.json()) == 2

    def test_includes_reviews_and_rating(self, client: TestClient, db_session, room, customer):
        for rating in (4, 5):
            db_session.add(Review(
                id=str(uuid.uuid4()), user_id=customer.id, room_id=room.id,
                booking_id=str(uuid.uuid4()), rating=rating, comment="Lovely stay, very clean.",
            ))
        db_session.commit()
        data = client.get(f"/api/rooms/{room.id}").json()
        assert data["averageRating"] == 4.5
        assert len(data["reviews"]) == 2
        assert data["reviews"][0]["user"]["firstName"] == "Jane"


class TestGetRoom:
    """GET /api/rooms/{id}"""

    def test_get_room(self, client: TestClient, room):
        resp = client.get(f"/api/rooms/{room.id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["_id"] == room.id
        assert data["pricePerNight"] == 100.0
        assert data["averageRating"] == 0

    def test_unknown_room(self, client: TestClient):
        assert client.get(f"/api/rooms/{uuid.uuid4()}").status_code == 404


class TestAvailability:
    """GET /api/rooms/{id}/availability"""

    def test_free_room(self, client: TestClient, room, future):
        resp = client.get(f"/api/rooms/{room.id}/availability", params={
            "checkIn": future.isoformat(), "checkOut": (future + timedelta(days=2)).isoformat(),
        })
        assert resp.status_code == 200
        assert resp.json() == {"available": True, "conflictingBookings": 0}

    def test_booked_room(self, client: TestClient, room, customer, make_booking, future):
        make_booking(customer, room, future, nights=3)
        resp = client.get(f"/api/rooms/{room.id}/availability", params={
            "checkIn": (future + timedelta(days=1)).isoformat(), "checkOut": (future + timedelta(days=2)).isoformat(),
        })
        assert resp.json() == {"available": False, "conflictingBookings": 1}

    def test_checkout_day_is_free(self, client: TestClient, room, customer, make_booking, future):
        make_booking(customer, room, future, nights=2)
        resp = client.get(f"/api/rooms/{room.id}/availability", params={
            "checkIn": (future + timedelta(days=2)).isoformat(), "checkOut": (future + timedelta(days=4)).isoformat(),
        })
        assert resp.json()["available"] is True

    def test_missing_dates(self, client: TestClient, room):
        resp = client.get(f"/api/rooms/{room.id}/availability")
        assert resp.status_code == 400

    def test_inverted_dates(self, client: TestClient, room, future):
        resp = client.get(f"/api/rooms/{room.id}/availability", params={
            "checkIn": future.isoformat(), "checkOut": future.isoformat(),
        })
        assert resp.status_code == 400
