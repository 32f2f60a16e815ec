"""Tests for the GAQ detector and global aggregated quality endpoints."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from tests.builders import (
    HOUR,
    RUN_START,
    make_data_pass,
    make_detector,
    make_flag_type,
    make_run,
)

RUN_END = RUN_START + 2 * HOUR


@pytest.fixture
def setup(db_session: Session) -> dict:
    """Run 1 with CPV and EMC in a data pass, run 2 outside of it, and flag types."""
    cpv = make_detector(db_session, "CPV")
    emc = make_detector(db_session, "EMC")
    fdd = make_detector(db_session, "FDD")
    run = make_run(db_session, 1, detectors=[cpv, emc])
    make_run(db_session, 2, detectors=[cpv, emc])
    return {
        "cpv": cpv,
        "emc": emc,
        "fdd": fdd,
        "data_pass": make_data_pass(db_session, "LHC24a_apass1", runs=[run]),
        "bad": make_flag_type(db_session, "BadPID"),
        "good": make_flag_type(db_session, "Good", bad=False),
    }


@pytest.fixture
def set_detectors(client: TestClient, auth_headers: Callable[..., dict[str, str]], setup: dict):
    """Set GAQ detectors as an admin, returns the response."""

    def _set(detectors: list[str], run_numbers: list[int] | None = None, data_pass_id: int | None = None):
        body = {
            "dataPassId": data_pass_id or setup["data_pass"].id,
            "runNumbers": run_numbers or [1],
            "detectorIds": [setup[name].id for name in detectors] if detectors else [999],
        }
        return client.post("/api/gaqDetectors", json=body, headers=auth_headers(access=["admin"]))

    return _set


def error_detail(response) -> str:
    return response.json()["errors"][0]["detail"]


class TestGaqDetectors:
    """Tests for /api/gaqDetectors."""

    def test_set_and_get(self, client: TestClient, set_detectors, setup: dict) -> None:
        response = set_detectors(["emc", "cpv"])

        assert response.status_code == 201
        assert len(response.json()["data"]) == 2
        assert response.json()["data"][0]["runNumber"] == 1

        listed = client.get("/api/gaqDetectors", params={"dataPassId": setup["data_pass"].id, "runNumber": 1})
        assert [detector["name"] for detector in listed.json()["data"]] == ["CPV", "EMC"]

    def test_setting_again_replaces(self, client: TestClient, set_detectors, setup: dict) -> None:
        set_detectors(["cpv", "emc"])
        set_detectors(["emc"])

        listed = client.get("/api/gaqDetectors", params={"dataPassId": setup["data_pass"].id, "runNumber": 1})
        assert [detector["name"] for detector in listed.json()["data"]] == ["EMC"]

    def test_requires_qc_admin(
        self, client: TestClient, setup: dict, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        body = {"dataPassId": setup["data_pass"].id, "runNumbers": [1], "detectorIds": [setup["cpv"].id]}

        response = client.post("/api/gaqDetectors", json=body, headers=auth_headers())
        qc_admin = client.post(
            "/api/gaqDetectors", json=body, headers=auth_headers(access=["dpg_asynchronous_qc_admin"])
        )

        assert response.status_code == 403
        assert qc_admin.status_code == 201

    def test_unknown_data_pass(self, set_detectors) -> None:
        response = set_detectors(["cpv"], data_pass_id=999)

        assert response.status_code == 404
        assert error_detail(response) == "Data Pass with this id (999) could not be found"

    def test_invalid_associations(self, set_detectors, setup: dict) -> None:
        not_in_pass = set_detectors(["cpv"], run_numbers=[1, 2])
        unknown_detector = set_detectors([])
        not_in_run = set_detectors(["cpv", "fdd"])

        assert not_in_pass.status_code == 400
        assert error_detail(not_in_pass) == (
            f"No association between data pass with id {setup['data_pass'].id} and following runs: 2"
        )
        assert error_detail(unknown_detector) == "No detectors with IDs: (999)"
        assert error_detail(not_in_run) == 'No association between runs and detectors: [[1, ["FDD"]]]'


class TestGlobalAggregatedQuality:
    """Tests for /api/qcFlags/gaq and /api/qcFlags/summary/gaq."""

    @pytest.fixture
    def flags(self, client: TestClient, auth_headers: Callable[..., dict[str, str]], set_detectors, setup: dict):
        """A bad CPV flag over the first hour and a good EMC flag over the whole run."""
        set_detectors(["cpv", "emc"])

        def post(flag_type: str, detector: str, **fields) -> dict:
            body = {
                "flagTypeId": setup[flag_type].id,
                "runNumber": 1,
                "detectorId": setup[detector].id,
                "dataPassId": setup["data_pass"].id,
                **fields,
            }
            return client.post("/api/qcFlags", json=body, headers=auth_headers()).json()["data"]

        return {
            "cpv": post("bad", "cpv", **{"from": RUN_START, "to": RUN_START + HOUR}),
            "emc": post("good", "emc"),
        }

    def test_periods(self, client: TestClient, flags: dict, setup: dict) -> None:
        response = client.get("/api/qcFlags/gaq", params={"dataPassId": setup["data_pass"].id, "runNumber": 1})

        assert response.status_code == 200
        assert [
            (period["from"], period["to"], sorted(flag["id"] for flag in period["contributingFlags"]))
            for period in response.json()["data"]
        ] == [
            (RUN_START, RUN_START + HOUR, sorted([flags["cpv"]["id"], flags["emc"]["id"]])),
            (RUN_START + HOUR, RUN_END, [flags["emc"]["id"]]),
        ]

    def test_flags_of_other_detectors_are_ignored(
        self, client: TestClient, flags: dict, set_detectors, setup: dict
    ) -> None:
        set_detectors(["emc"])

        response = client.get("/api/qcFlags/gaq", params={"dataPassId": setup["data_pass"].id, "runNumber": 1})

        assert [(period["from"], period["to"]) for period in response.json()["data"]] == [(RUN_START, RUN_END)]

    def test_summary(self, client: TestClient, flags: dict, setup: dict) -> None:
        response = client.get("/api/qcFlags/summary/gaq", params={"dataPassId": setup["data_pass"].id})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "1": {
                "badEffectiveRunCoverage": 0.5,
                "explicitlyNotBadEffectiveRunCoverage": 0.5,
                "mcReproducible": False,
                "missingVerificationsCount": 2,
                "undefinedQualityPeriodsCount": 0,
            }
        }

    def test_no_gaq_detectors(self, client: TestClient, setup: dict) -> None:
        params = {"dataPassId": setup["data_pass"].id}

        assert client.get("/api/qcFlags/gaq", params={**params, "runNumber": 1}).json()["data"] == []
        assert client.get("/api/qcFlags/summary/gaq", params=params).json()["data"] == {}

    def test_unknown_data_pass(self, client: TestClient) -> None:
        response = client.get("/api/qcFlags/summary/gaq", params={"dataPassId": 999})

        assert response.status_code == 404
        assert error_detail(response) == "Data Pass with this id (999) could not be found"

    def test_invalid_query(self, client: TestClient) -> None:
        response = client.get("/api/qcFlags/gaq", params={"dataPassId": "first", "runNumber": 1})

        assert response.status_code == 400
        assert response.json()["errors"][0]["source"]["pointer"] == "/query/dataPassId"
