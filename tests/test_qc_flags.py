"""Tests for the QC flag endpoints."""

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
    make_simulation_pass,
)

RUN_END = RUN_START + 2 * HOUR


@pytest.fixture
def setup(db_session: Session) -> dict:
    """A run with ITS, a data pass and a simulation pass over it, and flag types."""
    its = make_detector(db_session, "ITS")
    tst = make_detector(db_session, "TST")
    run = make_run(db_session, 1, detectors=[its, tst])
    return {
        "its": its,
        "tpc": make_detector(db_session, "TPC"),
        "tst": tst,
        "run": run,
        "data_pass": make_data_pass(db_session, "LHC24a_apass1", runs=[run]),
        "simulation_pass": make_simulation_pass(db_session, "LHC24a1", runs=[run]),
        "bad": make_flag_type(db_session, "BadPID"),
        "good": make_flag_type(db_session, "Good", bad=False),
        "archived": make_flag_type(db_session, "Obsolete", archived=True),
    }


@pytest.fixture
def post_flag(client: TestClient, auth_headers: Callable[..., dict[str, str]], setup: dict):
    """Create a flag through the API, returns the response."""

    def _post(external_id: int = 1, name: str = "John Doe", **fields):
        body = {"flagTypeId": setup["bad"].id, "runNumber": 1, "detectorId": setup["its"].id, **fields}
        return client.post("/api/qcFlags", json=body, headers=auth_headers(external_id=external_id, name=name))

    return _post


def periods(flag: dict) -> list[tuple[int | None, int | None]]:
    return [(period["from"], period["to"]) for period in flag["effectivePeriods"]]


def error_detail(response) -> str:
    return response.json()["errors"][0]["detail"]


class TestCreateFlag:
    """Tests for POST /api/qcFlags."""

    def test_period_defaults_to_the_run(self, post_flag) -> None:
        response = post_flag(comment="Noisy")

        assert response.status_code == 201
        flag = response.json()["data"]
        assert (flag["from"], flag["to"]) == (RUN_START, RUN_END)
        assert flag["comment"] == "Noisy"
        assert flag["origin"] == "human"
        assert flag["flagType"]["method"] == "BadPID"
        assert flag["createdBy"]["name"] == "John Doe"
        assert flag["verifications"] == []
        assert periods(flag) == [(RUN_START, RUN_END)]

    def test_requires_session(self, client: TestClient, setup: dict) -> None:
        response = client.post(
            "/api/qcFlags",
            json={"flagTypeId": setup["bad"].id, "runNumber": 1, "detectorId": setup["its"].id},
        )

        assert response.status_code == 401

    def test_newer_flag_overrides_older_ones(self, client: TestClient, post_flag) -> None:
        older = post_flag().json()["data"]
        newer = post_flag(**{"from": RUN_START + HOUR // 2, "to": RUN_START + HOUR}).json()["data"]

        older = client.get(f"/api/qcFlags/{older['id']}").json()["data"]
        assert periods(older) == [(RUN_START, RUN_START + HOUR // 2), (RUN_START + HOUR, RUN_END)]
        assert periods(newer) == [(RUN_START + HOUR // 2, RUN_START + HOUR)]

    def test_flag_fully_overridden(self, client: TestClient, post_flag) -> None:
        older = post_flag(**{"from": RUN_START, "to": RUN_START + HOUR}).json()["data"]
        post_flag()

        older = client.get(f"/api/qcFlags/{older['id']}").json()["data"]
        assert periods(older) == []

    def test_scopes_do_not_override_each_other(
        self, client: TestClient, post_flag, setup: dict
    ) -> None:
        synchronous = post_flag().json()["data"]
        post_flag(dataPassId=setup["data_pass"].id)
        post_flag(simulationPassId=setup["simulation_pass"].id)

        synchronous = client.get(f"/api/qcFlags/{synchronous['id']}").json()["data"]
        assert periods(synchronous) == [(RUN_START, RUN_END)]

    @pytest.mark.parametrize(
        ("fields", "detail"),
        [
            ({"from": RUN_START + HOUR, "to": RUN_START + HOUR},
             'Parameter "to" timestamp must be greater than "from" timestamp'),
            ({"from": RUN_START - 1},
             f"Given QC flag period ({RUN_START - 1}, {RUN_END}) is out of run ({RUN_START}, {RUN_END}) period"),
            ({"to": RUN_END + 1},
             f"Given QC flag period ({RUN_START}, {RUN_END + 1}) is out of run ({RUN_START}, {RUN_END}) period"),
        ],
    )
    def test_invalid_period(self, post_flag, fields: dict, detail: str) -> None:
        response = post_flag(**fields)

        assert response.status_code == 400
        assert error_detail(response) == detail

    def test_run_without_end(
        self, client: TestClient, db_session: Session, post_flag, setup: dict
    ) -> None:
        make_run(db_session, 2, end=None, detectors=[setup["its"]])

        explicit = post_flag(runNumber=2, **{"from": RUN_START})
        defaulted = post_flag(runNumber=2)

        for response in (explicit, defaulted):
            assert response.status_code == 400
            assert error_detail(response) == (
                "Only null QC flag timestamps are accepted as run.startTime or run.endTime is missing"
            )

    def test_run_without_bounds(
        self, client: TestClient, db_session: Session, post_flag, setup: dict
    ) -> None:
        make_run(db_session, 2, start=None, end=None, detectors=[setup["its"]])

        rejected = post_flag(runNumber=2, **{"to": RUN_END})
        accepted = post_flag(runNumber=2)

        assert rejected.status_code == 400
        assert accepted.status_code == 201
        flag = accepted.json()["data"]
        assert (flag["from"], flag["to"]) == (None, None)
        assert periods(flag) == [(None, None)]

    def test_archived_flag_type(self, post_flag, setup: dict) -> None:
        response = post_flag(flagTypeId=setup["archived"].id)

        assert response.status_code == 400
        assert error_detail(response) == "Quality Control Flag Type (Obsolete) is archived"

    def test_non_qc_detector(self, post_flag, setup: dict) -> None:
        response = post_flag(detectorId=setup["tst"].id)

        assert response.status_code == 400
        assert error_detail(response) == "QC flags cannot be assigned to non QC detector (TST)"

    def test_detector_not_in_run(self, post_flag, setup: dict) -> None:
        response = post_flag(detectorId=setup["tpc"].id)

        assert response.status_code == 400
        assert error_detail(response) == (
            "There is not association between run with this number (1) and detector with this name (TPC)"
        )

    def test_run_not_in_data_pass(
        self, db_session: Session, post_flag, setup: dict
    ) -> None:
        make_run(db_session, 2, detectors=[setup["its"]])

        response = post_flag(runNumber=2, dataPassId=setup["data_pass"].id)

        assert response.status_code == 400
        assert error_detail(response) == (
            f"There is not association between data pass with this id ({setup['data_pass'].id}), "
            "run with this number (2) and detector with this name (ITS)"
        )

    def test_unknown_references(self, post_flag) -> None:
        unknown_run = post_flag(runNumber=9)
        unknown_type = post_flag(flagTypeId=999)
        unknown_pass = post_flag(dataPassId=999)

        assert unknown_run.status_code == 404
        assert error_detail(unknown_run) == "Run with this number (9) could not be found"
        assert unknown_type.status_code == 404
        assert unknown_pass.status_code == 404

    def test_both_passes_rejected(self, post_flag, setup: dict) -> None:
        response = post_flag(dataPassId=setup["data_pass"].id, simulationPassId=setup["simulation_pass"].id)

        assert response.status_code == 400


class TestListFlags:
    """Tests for the per scope listings."""

    def test_per_scope(self, client: TestClient, post_flag, setup: dict) -> None:
        synchronous = post_flag().json()["data"]
        first = post_flag(dataPassId=setup["data_pass"].id).json()["data"]
        second = post_flag(dataPassId=setup["data_pass"].id).json()["data"]
        simulated = post_flag(simulationPassId=setup["simulation_pass"].id).json()["data"]
        scope = {"runNumber": 1, "detectorId": setup["its"].id}

        per_data_pass = client.get(
            "/api/qcFlags/perDataPass", params={**scope, "dataPassId": setup["data_pass"].id}
        ).json()
        per_simulation_pass = client.get(
            "/api/qcFlags/perSimulationPass",
            params={**scope, "simulationPassId": setup["simulation_pass"].id},
        ).json()
        synchronous_list = client.get("/api/qcFlags/synchronous", params=scope).json()

        assert per_data_pass["meta"]["totalCount"] == 2
        assert [flag["id"] for flag in per_data_pass["data"]] == [second["id"], first["id"]]
        assert [flag["id"] for flag in per_simulation_pass["data"]] == [simulated["id"]]
        assert [flag["id"] for flag in synchronous_list["data"]] == [synchronous["id"]]

    def test_created_by(self, client: TestClient, post_flag, setup: dict) -> None:
        post_flag(external_id=1, name="John Doe")
        by_jane = post_flag(external_id=2, name="Jane Doe").json()["data"]
        params = {"runNumber": 1, "detectorId": setup["its"].id, "filter[createdBy][names]": "Jane Doe"}

        response = client.get("/api/qcFlags/synchronous", params=params)
        invalid = client.get(
            "/api/qcFlags/synchronous", params={**params, "filter[createdBy][operator]": "and"}
        )

        assert [flag["id"] for flag in response.json()["data"]] == [by_jane["id"]]
        assert invalid.status_code == 400

    def test_missing_scope_parameter(self, client: TestClient) -> None:
        response = client.get("/api/qcFlags/perDataPass", params={"runNumber": 1, "detectorId": 1})

        assert response.status_code == 400

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/api/qcFlags/999")

        assert response.status_code == 404
        assert error_detail(response) == "Quality Control Flag with this id (999) could not be found"


class TestVerifyAndDeleteFlag:
    """Tests for verification and deletion."""

    def test_cannot_verify_own_flag(
        self, client: TestClient, post_flag, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        flag = post_flag().json()["data"]

        response = client.post(f"/api/qcFlags/{flag['id']}/verify", json={}, headers=auth_headers())

        assert response.status_code == 403
        assert error_detail(response) == "You cannot verify QC flag created by you"

    def test_verify(
        self, client: TestClient, post_flag, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        flag = post_flag().json()["data"]

        response = client.post(
            f"/api/qcFlags/{flag['id']}/verify",
            json={"comment": "Checked"},
            headers=auth_headers(external_id=2, name="Jane Doe"),
        )

        assert response.status_code == 200
        verifications = response.json()["data"]["verifications"]
        assert len(verifications) == 1
        assert verifications[0]["comment"] == "Checked"
        assert verifications[0]["createdBy"]["name"] == "Jane Doe"

    def test_delete_requires_admin(
        self, client: TestClient, post_flag, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        flag = post_flag().json()["data"]

        anonymous = client.delete(f"/api/qcFlags/{flag['id']}")
        not_admin = client.delete(f"/api/qcFlags/{flag['id']}", headers=auth_headers())

        assert anonymous.status_code == 401
        assert not_admin.status_code == 403
        assert error_detail(not_admin) == "One of the following roles is required: admin"

    def test_delete_gives_time_back_to_older_flags(
        self, client: TestClient, post_flag, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        older = post_flag().json()["data"]
        newer = post_flag(**{"from": RUN_START, "to": RUN_START + HOUR}).json()["data"]

        response = client.delete(f"/api/qcFlags/{newer['id']}", headers=auth_headers(access=["admin"]))

        assert response.status_code == 200
        assert response.json()["data"]["id"] == newer["id"]
        assert client.get(f"/api/qcFlags/{newer['id']}").status_code == 404
        older = client.get(f"/api/qcFlags/{older['id']}").json()["data"]
        assert periods(older) == [(RUN_START, RUN_END)]

    def test_verified_flag_cannot_be_deleted(
        self, client: TestClient, post_flag, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        flag = post_flag().json()["data"]
        client.post(f"/api/qcFlags/{flag['id']}/verify", headers=auth_headers(external_id=2, name="Jane Doe"))

        response = client.delete(f"/api/qcFlags/{flag['id']}", headers=auth_headers(access=["admin"]))

        assert response.status_code == 409
        assert error_detail(response) == "Cannot delete QC flag which is verified"


class TestFrozenDataPass:
    """Tests for QC flags of a frozen data pass."""

    def test_flag_cannot_be_created(self, post_flag, setup: dict, db_session: Session) -> None:
        setup["data_pass"].is_frozen = True
        db_session.commit()

        response = post_flag(dataPassId=setup["data_pass"].id)

        assert response.status_code == 400
        assert error_detail(response) == "Data pass (LHC24a_apass1) is frozen"
        assert post_flag(simulationPassId=setup["simulation_pass"].id).status_code == 201

    def test_flag_cannot_be_deleted(
        self, client: TestClient, post_flag, setup: dict, auth_headers: Callable[..., dict[str, str]]
    ) -> None:
        flag = post_flag(dataPassId=setup["data_pass"].id).json()["data"]
        admin = auth_headers(access=["admin"])
        client.patch("/api/dataPasses/freeze", params={"dataPassId": setup["data_pass"].id}, headers=admin)

        frozen = client.delete(f"/api/qcFlags/{flag['id']}", headers=admin)
        client.patch("/api/dataPasses/unfreeze", params={"dataPassId": setup["data_pass"].id}, headers=admin)
        unfrozen = client.delete(f"/api/qcFlags/{flag['id']}", headers=admin)

        assert frozen.status_code == 409
        assert error_detail(frozen) == "Data pass (LHC24a_apass1) is frozen"
        assert unfrozen.status_code == 200
