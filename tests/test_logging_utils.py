import json
import logging

from scopemetrics.utils.logging_utils import ErrorOnce, JsonFormatter, setup_logging


def test_error_once_warns_then_debugs(caplog):
    log = logging.getLogger('test.error_once')
    caplog.set_level(logging.DEBUG, logger='test.error_once')
    once = ErrorOnce(log)
    assert once.log('k', 'boom %s', 1) is True
    assert once.log('k', 'boom %s', 2) is False
    levels = [r.levelno for r in caplog.records if r.name == 'test.error_once']
    assert levels == [logging.WARNING, logging.DEBUG]
    once.reset()
    assert once.log('k', 'boom') is True


def test_json_formatter_merges_extras():
    record = logging.LogRecord('x', logging.INFO, __file__, 1, 'hello %s', ('world',), None)
    record.scope = 'svc'
    record.obj = object()
    payload = json.loads(JsonFormatter().format(record))
    assert payload['msg'] == 'hello world'
    assert payload['level'] == 'INFO'
    assert payload['scope'] == 'svc'
    assert payload['obj'].startswith('<object')


def test_setup_logging_handlers(tmp_path, monkeypatch):
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    try:
        monkeypatch.setenv('SCOPEMETRICS_JSON_LOGS', '1')
        log_file = tmp_path / 'out.log'
        setup_logging('debug', str(log_file))
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert not isinstance(root.handlers[1].formatter, JsonFormatter)
    finally:
        for h in root.handlers[:]:
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
