"""
Tests for the API payload models
"""
import importlib.util
import warnings

from pydantic.warnings import PydanticDeprecatedSince20

from pr_deploy_bot import models
from pr_deploy_bot.models import Deployment, PullRequest


def test_models_define_without_deprecation_warnings():
    spec = importlib.util.spec_from_file_location("payload_models", models.__file__)
    module = importlib.util.module_from_spec(spec)

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        spec.loader.exec_module(module)

    assert [w for w in caught if issubclass(w.category, PydanticDeprecatedSince20)] == []


def test_unknown_fields_are_kept():
    deployment = Deployment.model_validate({"uid": "dpl_1", "url": "a.now.sh", "creator": {"uid": "u1"}})

    assert deployment.creator == {"uid": "u1"}
    assert deployment.model_dump()["creator"] == {"uid": "u1"}


def test_pull_request_links_by_alias_or_name():
    links = {"statuses": {"href": "https://api.github.com/s/1"}}

    assert PullRequest.model_validate({"number": 1, "_links": links}).statuses_url == "https://api.github.com/s/1"
    assert PullRequest(number=1, links=links).statuses_url == "https://api.github.com/s/1"
