import json

import pytest

from scopemetrics.config.settings import ScopeSettings, load_settings, validate_settings
from scopemetrics.metrics.buckets import DurationBuckets
from scopemetrics.metrics.factory import root_scope_from_settings
from scopemetrics.reporters.logging_reporter import LoggingStatsReporter
from scopemetrics.reporters.prometheus import PrometheusReporter
from scopemetrics.utils.exceptions import ConfigError


def test_defaults_without_file_or_env():
    s = load_settings()
    assert s == ScopeSettings()
    assert s.reporter == 'none'
    assert s.report_interval is None


def test_load_from_json_file(tmp_path):
    p = tmp_path / 'metrics.json'
    p.write_text(json.dumps({
        'prefix': 'svc',
        'tags': {'env': 'prod', 'shard': 3},
        'report_interval': 5,
        'default_buckets': [0.1, 1],
        'reporter': 'logging',
    }))
    s = load_settings(p)
    assert s.prefix == 'svc'
    assert s.tags == {'env': 'prod', 'shard': '3'}
    assert s.report_interval == 5
    assert s.default_buckets == (0.1, 1.0)
    assert s.reporter == 'logging'


def test_schema_violation_raises_config_error(tmp_path):
    p = tmp_path / 'bad.json'
    p.write_text(json.dumps({'reporter': 'statsd'}))
    with pytest.raises(ConfigError):
        load_settings(p)
    with pytest.raises(ConfigError):
        validate_settings({'unknown_key': 1})
    with pytest.raises(ConfigError):
        validate_settings({'report_interval': 0})


def test_missing_or_malformed_file(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / 'absent.json')
    p = tmp_path / 'broken.json'
    p.write_text('{not json')
    with pytest.raises(ConfigError):
        load_settings(p)


def test_env_overrides(tmp_path, monkeypatch):
    p = tmp_path / 'metrics.json'
    p.write_text(json.dumps({'prefix': 'svc', 'tags': {'env': 'dev', 'team': 'core'}}))
    monkeypatch.setenv('SCOPEMETRICS_PREFIX', 'api')
    monkeypatch.setenv('SCOPEMETRICS_TAGS', 'env=prod, region=eu')
    monkeypatch.setenv('SCOPEMETRICS_REPORT_INTERVAL_SECONDS', '2.5')
    monkeypatch.setenv('SCOPEMETRICS_DEFAULT_BUCKETS', '0.5,1,2')
    monkeypatch.setenv('SCOPEMETRICS_REPORTER', 'Prometheus')
    monkeypatch.setenv('SCOPEMETRICS_PROMETHEUS_PORT', '9200')
    s = load_settings(p)
    assert s.prefix == 'api'
    assert s.tags == {'env': 'prod', 'team': 'core', 'region': 'eu'}
    assert s.report_interval == 2.5
    assert s.default_buckets == (0.5, 1.0, 2.0)
    assert s.reporter == 'prometheus'
    assert s.prometheus_port == 9200


@pytest.mark.parametrize('name,value', [
    ('SCOPEMETRICS_REPORT_INTERVAL_SECONDS', 'soon'),
    ('SCOPEMETRICS_REPORT_INTERVAL_SECONDS', '-1'),
    ('SCOPEMETRICS_PROMETHEUS_PORT', 'http'),
    ('SCOPEMETRICS_REPORTER', 'statsd'),
    ('SCOPEMETRICS_TAGS', 'novalue'),
    ('SCOPEMETRICS_DEFAULT_BUCKETS', '1,two'),
])
def test_invalid_env_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError):
        load_settings()


def test_root_scope_from_settings_logging():
    s = ScopeSettings(prefix='svc', tags={'env': 'prod'}, default_buckets=(0.5, 1.0), reporter='logging')
    root = root_scope_from_settings(s)
    try:
        assert isinstance(root._reporter, LoggingStatsReporter)
        assert root.prefix == 'svc'
        assert root.tags == {'env': 'prod'}
        assert root.default_buckets == DurationBuckets([0.5, 1.0])
        assert root._report_loop is None
    finally:
        root.close()


def test_root_scope_from_settings_prometheus_with_loop():
    root = root_scope_from_settings(ScopeSettings(reporter='prometheus', report_interval=60))
    try:
        assert isinstance(root._cached_reporter, PrometheusReporter)
        assert root._report_loop is not None and root._report_loop.running
    finally:
        root.close()
    assert not root._report_loop.running
