"""Shared fixtures for the risk scorer tests."""

import logging

import pytest

from risk_scorer.config import reset_config


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def detach_cli_log_handlers():
    """Drop handlers the CLI attached to streams captured by CliRunner."""
    yield
    logger = logging.getLogger("risk_scorer")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def make_records(solution_id="sol-1", env_id="env-1", hosting_id="host-1"):
    """A complete, well-scored set of records for one environment."""
    return {
        "environments": [
            {
                "env_id": env_id,
                "solution_id": solution_id,
                "hosting_id": hosting_id,
                "env_type": "production",
                "redundancy": "geo-redundant",
                "backup": {"exists": True, "rto": 4, "rpo": 1},
                "deployment_type": "microservices",
                "virtualization": "k8s",
                "db_scaling_mechanism": "Horizontal",
                "sla_offered": "99.95%",
                "data_types": ["Health"],
            }
        ],
        "securityprofiles": [
            {
                "sec_id": "sec-1",
                "env_id": env_id,
                "auth": "SSO",
                "encryption": {"in_transit": True, "at_rest": True},
                "patching": "automated",
                "pentest_freq": "quarterly",
                "centralized_monitoring": True,
            }
        ],
        "monitoringobservabilities": [
            {
                "mon_id": "mon-1",
                "env_id": env_id,
                "perf_monitoring": "Yes",
                "log_centralization": "Yes",
                "tools": ["Prometheus"],
            }
        ],
        "codebases": [
            {
                "codebase_id": "code-1",
                "solution_id": solution_id,
                "documentation_level": "High",
                "technical_debt_known": "Low",
            }
        ],
        "developmentmetrics": [
            {"metrics_id": "metrics-1", "solution_id": solution_id}
        ],
        "hostings": [
            {
                "hosting_id": hosting_id,
                "provider": "OVH",
                "certifications": ["ISO 27001", "HDS"],
            }
        ],
        "scoringsnapshots": [],
    }


@pytest.fixture
def records():
    return make_records()
