from aintru.models.enums import WaitlistStatus
from aintru.models.waitlist import Waitlist


def test_join_normalizes_email(client, db):
    r = client.post("/api/waitlist/join", json={"name": " Ana ", "email": "Ana@Mail.COM ", "phone": "12345"})
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["data"]["email"] == "ana@mail.com"
    assert body["data"]["name"] == "Ana"
    assert db.query(Waitlist).one().status == WaitlistStatus.WAITING


def test_join_requires_fields_and_valid_email(client):
    r = client.post("/api/waitlist/join", json={"name": "Ana", "email": "ana@mail.com"})
    assert r.status_code == 400
    assert r.json()["error"] == "Name, email and phone number are required"

    r = client.post("/api/waitlist/join", json={"name": "Ana", "email": "not-an-email", "phone": "1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Please enter a valid email"


def test_join_twice(client):
    body = {"name": "Ana", "email": "ana@mail.com", "phone": "12345"}
    client.post("/api/waitlist/join", json=body)
    r = client.post("/api/waitlist/join", json={**body, "email": "ANA@mail.com"})
    assert r.status_code == 400
    assert r.json()["error"] == "You are already on our waitlist!"


def test_stats(client, db):
    db.add_all([
        Waitlist(name="a", email="a@mail.com", phone="1"),
        Waitlist(name="b", email="b@mail.com", phone="2", status=WaitlistStatus.CONTACTED),
        Waitlist(name="c", email="c@mail.com", phone="3", status=WaitlistStatus.CONVERTED),
        Waitlist(name="d", email="d@mail.com", phone="4"),
    ])
    db.commit()

    r = client.get("/api/waitlist/stats")
    assert r.json() == {
        "success": True,
        "data": {"total": 4, "waiting": 2, "contacted": 1, "converted": 1},
    }


def test_join_accepts_plus_tags_and_long_tlds(client, db):
    for email in ("bob@example.info", "a+b@gmail.com", "first.last@sub.company.museum"):
        r = client.post("/api/waitlist/join", json={"name": "Bob", "email": email, "phone": "12345"})
        assert r.status_code == 201, email
        assert r.json()["data"]["email"] == email

    assert db.query(Waitlist).count() == 3


def test_tagged_email_passes_signup_gate(client):
    client.post("/api/waitlist/join", json={"name": "Bob", "email": "A+b@Gmail.com", "phone": "12345"})
    r = client.post("/api/auth/verify-credentials", json={"name": "Bob", "email": "a+b@gmail.com", "phone": "12345"})
    assert r.status_code == 200
    assert r.json()["is_new_user"] is True
