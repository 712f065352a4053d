from conftest import API


class TestTimeEntries:
    """Tests for /time-entries"""

    async def test_logged_entry_duration(self, client, auth_headers):
        response = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "description": "Réunion client",
            "start_time": "2026-05-04T09:00:00Z",
            "end_time": "2026-05-04T10:30:00Z",
        })

        assert response.status_code == 201
        assert response.json()["duration"] == 90
        assert response.json()["is_running"] is False

    async def test_end_before_start(self, client, auth_headers):
        response = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T10:00:00Z",
            "end_time": "2026-05-04T09:00:00Z",
        })

        assert response.status_code == 400

    async def test_offset_free_time_is_utc(self, client, auth_headers):
        response = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-01-01T10:00:00Z",
            "end_time": "2026-01-01T11:00:00",
        })

        assert response.status_code == 201, response.text
        assert response.json()["duration"] == 60

    async def test_mixed_offsets_end_before_start(self, client, auth_headers):
        response = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-01-01T10:00:00",
            "end_time": "2026-01-01T09:00:00Z",
        })

        assert response.status_code == 400

    async def test_duration_rounds_to_nearest_minute(self, client, auth_headers):
        rounded_up = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T09:00:00Z",
            "end_time": "2026-05-04T09:59:36Z",
        })
        rounded_down = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T11:00:00Z",
            "end_time": "2026-05-04T11:10:20Z",
        })

        assert rounded_up.json()["duration"] == 60
        assert rounded_down.json()["duration"] == 10

    async def test_starting_a_timer_stops_the_running_one(self, client, auth_headers):
        first = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T08:00:00Z",
            "is_running": True,
        })
        await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T09:00:00Z",
            "is_running": True,
        })

        stopped = await client.get(f"{API}/time-entries/{first.json()['id']}", headers=auth_headers)
        assert stopped.json()["is_running"] is False
        assert stopped.json()["end_time"] is not None

        running = await client.get(f"{API}/time-entries/", headers=auth_headers, params={"is_running": "true"})
        assert running.json()["summary"]["running_entries"] == 1

    async def test_stop_with_end_time(self, client, auth_headers):
        entry = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T14:00:00Z",
            "is_running": True,
        })

        response = await client.put(f"{API}/time-entries/{entry.json()['id']}", headers=auth_headers, json={
            "end_time": "2026-05-04T16:15:00Z",
        })

        assert response.status_code == 200
        assert response.json()["duration"] == 135
        assert response.json()["is_running"] is False

    async def test_summary(self, client, auth_headers):
        for start, end in (("09:00", "10:00"), ("11:00", "11:30")):
            await client.post(f"{API}/time-entries/", headers=auth_headers, json={
                "start_time": f"2026-05-05T{start}:00Z",
                "end_time": f"2026-05-05T{end}:00Z",
            })

        response = await client.get(f"{API}/time-entries/", headers=auth_headers)

        assert response.json()["summary"] == {
            "total_entries": 2,
            "total_minutes": 90,
            "total_hours": 1.5,
            "running_entries": 0,
        }

    async def test_delete(self, client, auth_headers):
        entry = await client.post(f"{API}/time-entries/", headers=auth_headers, json={
            "start_time": "2026-05-04T14:00:00Z",
            "end_time": "2026-05-04T15:00:00Z",
        })

        response = await client.delete(f"{API}/time-entries/{entry.json()['id']}", headers=auth_headers)

        assert response.status_code == 204
