"""Tests for GET /api/qcFlags/summary."""

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
    make_lhc_period,
    make_run,
)


@pytest.fixture
def flag_poster(client: TestClient, auth_headers: Callable[..., dict[str, str]]):
    def _post(**fields) -> dict:
        response = client.post("/api/qcFlags", json=fields, headers=auth_headers())
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _post


class TestQcSummary:
    """Tests for the QC summary endpoint."""

    def test_data_pass_summary(
        self, client: TestClient, db_session: Session, flag_poster
    ) -> None:
        its = make_detector(db_session, "ITS")
        run = make_run(db_session, 1, detectors=[its])
        data_pass = make_data_pass(db_session, "LHC24a_apass1", runs=[run])
        bad = make_flag_type(db_session, "BadPID")
        good = make_flag_type(db_session, "Good", bad=False)
        scope = {"runNumber": 1, "detectorId": its.id, "dataPassId": data_pass.id}

        flag_poster(flagTypeId=bad.id, **scope)
        flag_poster(flagTypeId=good.id, **scope, **{"from": RUN_START + HOUR // 2, "to": RUN_START + HOUR})

        response = client.get("/api/qcFlags/summary", params={"dataPassId": data_pass.id})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "1": {
                str(its.id): {
                    "badEffectiveRunCoverage": 0.75,
                    "explicitlyNotBadEffectiveRunCoverage": 0.25,
                    "missingVerificationsCount": 2,
                    "mcReproducible": False,
                }
            }
        }

    def test_mc_reproducible_as_not_bad(
        self, client: TestClient, db_session: Session, flag_poster
    ) -> None:
        its = make_detector(db_session, "ITS")
        run = make_run(db_session, 1, detectors=[its])
        data_pass = make_data_pass(db_session, "LHC24a_apass1", runs=[run])
        reproducible = make_flag_type(db_session, "LimitedAcceptanceMCReproducible", mc_reproducible=True)

        flag_poster(flagTypeId=reproducible.id, runNumber=1, detectorId=its.id, dataPassId=data_pass.id)

        default = client.get("/api/qcFlags/summary", params={"dataPassId": data_pass.id}).json()
        as_not_bad = client.get(
            "/api/qcFlags/summary",
            params={"dataPassId": data_pass.id, "mcReproducibleAsNotBad": "true"},
        ).json()

        unit = default["data"]["1"][str(its.id)]
        assert unit["badEffectiveRunCoverage"] == 1
        assert unit["mcReproducible"] is True
        unit = as_not_bad["data"]["1"][str(its.id)]
        assert unit["badEffectiveRunCoverage"] == 0
        assert unit["explicitlyNotBadEffectiveRunCoverage"] == 1

    def test_lhc_period_summary_uses_synchronous_flags(
        self, client: TestClient, db_session: Session, flag_poster
    ) -> None:
        its = make_detector(db_session, "ITS")
        period = make_lhc_period(db_session, "LHC24a")
        run = make_run(db_session, 1, detectors=[its], lhc_period=period)
        make_run(db_session, 2, detectors=[its])
        data_pass = make_data_pass(db_session, "LHC24a_apass1", runs=[run])
        bad = make_flag_type(db_session, "BadPID")

        flag_poster(flagTypeId=bad.id, runNumber=1, detectorId=its.id, **{"to": RUN_START + HOUR})
        flag_poster(flagTypeId=bad.id, runNumber=1, detectorId=its.id, dataPassId=data_pass.id)
        flag_poster(flagTypeId=bad.id, runNumber=2, detectorId=its.id)

        response = client.get("/api/qcFlags/summary", params={"lhcPeriodId": period.id})

        summary = response.json()["data"]
        assert list(summary) == ["1"]
        assert summary["1"][str(its.id)]["badEffectiveRunCoverage"] == 0.5

    def test_empty_scope(self, client: TestClient, db_session: Session) -> None:
        data_pass = make_data_pass(db_session, "LHC24a_apass1")

        response = client.get("/api/qcFlags/summary", params={"dataPassId": data_pass.id})

        assert response.json() == {"data": {}}

    @pytest.mark.parametrize("params", [{}, {"dataPassId": 1, "lhcPeriodId": 1}])
    def test_exactly_one_scope(self, client: TestClient, params: dict) -> None:
        response = client.get("/api/qcFlags/summary", params=params)

        assert response.status_code == 400
        assert response.json()["errors"][0]["detail"] == (
            "Exactly one of dataPassId, simulationPassId or lhcPeriodId must be provided"
        )
