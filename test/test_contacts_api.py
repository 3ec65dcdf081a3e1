"""
Tests for the phone list endpoints.
"""

from phone_survey.contacts.router import SAMPLE_CONTACTS, valid_batch_entries


class TestValidBatchEntries:
    def test_filters_invalid_entries(self) -> None:
        entries = [
            {"name": "Ann", "phone_number": "+14155550001"},
            {"name": "", "phone_number": "+14155550002"},
            {"name": "Bob", "phone_number": "4155550003"},
            {"name": "Cid", "phone_number": "+0123456"},
            {"name": "Dee"},
            {"name": "Fay", "phone_number": "+14155550004\n"},
            {"name": "Gus", "phone_number": " +14155550005"},
            "not a dict",
            {"name": "Eve", "phone_number": "+442071838750"},
        ]
        assert valid_batch_entries(entries) == [
            ("Ann", "+14155550001"),
            ("Eve", "+442071838750"),
        ]


class TestPhoneList:
    async def test_empty_list(self, async_client) -> None:
        response = await async_client.get("/api/phone")
        assert response.status_code == 200
        assert response.json() == {"phoneNumbers": []}

    async def test_add_and_list(self, async_client) -> None:
        response = await async_client.post(
            "/api/phone",
            json={"name": "Maria Lopez", "phone_number": "+14155551111"},
        )

        assert response.status_code == 200
        created = response.json()["phoneNumber"]
        assert created["name"] == "Maria Lopez"
        assert created["phone_number"] == "+14155551111"
        assert created["id"]

        listed = (await async_client.get("/api/phone")).json()["phoneNumbers"]
        assert [c["id"] for c in listed] == [created["id"]]

    async def test_add_requires_name_and_number(self, async_client) -> None:
        response = await async_client.post("/api/phone", json={"name": "Only Name"})
        assert response.status_code == 400
        assert response.json() == {"error": "Name and phone number are required"}

    async def test_populate_samples_once(self, async_client) -> None:
        first = await async_client.put("/api/phone")
        assert first.status_code == 200
        assert first.json()["message"] == "Added sample phone numbers"
        assert len(first.json()["phoneNumbers"]) == len(SAMPLE_CONTACTS)

        second = await async_client.put("/api/phone")
        assert second.json()["message"] == "Phone numbers already exist"
        assert len(second.json()["phoneNumbers"]) == len(SAMPLE_CONTACTS)


class TestPhoneBatch:
    async def test_inserts_valid_entries(self, async_client) -> None:
        await async_client.post("/api/phone", json={"name": "Existing", "phone_number": "+14155550000"})

        response = await async_client.post(
            "/api/phone/batch",
            json={
                "phoneEntries": [
                    {"name": "Ann", "phone_number": "+14155550001"},
                    {"name": "Bad", "phone_number": "555-0100"},
                ]
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Phone numbers added successfully"
        assert body["count"] == 1
        assert [c["name"] for c in body["phoneNumbers"]] == ["Ann"]
        assert len(body["fullList"]) == 2

    async def test_rejects_non_array(self, async_client) -> None:
        response = await async_client.post("/api/phone/batch", json={"phoneEntries": "nope"})
        assert response.status_code == 400
        assert response.json() == {"error": "Phone entries are required and must be an array"}

    async def test_rejects_missing_entries(self, async_client) -> None:
        response = await async_client.post("/api/phone/batch", json={})
        assert response.status_code == 400

    async def test_rejects_when_nothing_valid(self, async_client) -> None:
        response = await async_client.post(
            "/api/phone/batch",
            json={"phoneEntries": [{"name": "Bad", "phone_number": "12345"}]},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "No valid phone entries found"}
