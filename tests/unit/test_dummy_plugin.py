import pytest

from dummysource.core.errors import InvalidConfig, InvalidParams, MissingParameter, MalformedPayload
from dummysource.core.fields import FieldType
from dummysource.plugins.dummy import DummyPlugin, DummyConfig, FieldId


@pytest.fixture
def plugin():
    p = DummyPlugin(seed=42)
    p.configure('{"jitter": 0}')
    return p


def test_plugin_info():
    info = DummyPlugin().info()
    assert info.id == 3
    assert info.name == "dummy"
    assert info.event_source == "dummy"
    assert info.required_api_version == "0.2.0"
    assert info.version == "0.1.0"


@pytest.mark.parametrize("raw", [None, "", "{}", "  ", b"", {}])
def test_configure_defaults(raw):
    p = DummyPlugin()
    p.configure(raw)
    assert p.config.jitter == 10


@pytest.mark.parametrize("raw", ['{"jitter": 3}', b'{"jitter": 3}', {"jitter": 3}])
def test_configure_jitter(raw):
    p = DummyPlugin()
    p.configure(raw)
    assert p.config.jitter == 3


def test_configure_ignores_unknown_keys():
    p = DummyPlugin()
    p.configure('{"jitter": 1, "other": 5}')
    assert p.config.jitter == 1


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2]",
    '{"jitter": -1}',
    '{"jitter": "ten"}',
    '{"jitter": 1.5}',
    '{"jitter": true}',
    '{"jitter": 18446744073709551616}',
])
def test_configure_rejects_malformed(raw):
    with pytest.raises(InvalidConfig):
        DummyPlugin().configure(raw)


def test_configure_seeds_from_time_when_no_seed_given():
    p = DummyPlugin()
    p.configure()
    assert p.random.seed > 0


def test_config_is_immutable():
    config = DummyConfig(jitter=5)
    with pytest.raises(Exception):
        config.jitter = 6


def test_open_before_configure_fails():
    with pytest.raises(RuntimeError, match="not configured"):
        DummyPlugin().open('{"start": 1, "maxEvents": 1}')


def test_open_initial_state(plugin):
    session = plugin.open('{"start": 7, "maxEvents": 100}')
    assert session.sample == 7
    assert session.emitted == 0
    assert session.max_events == 100
    assert session.open_params == '{"start": 7, "maxEvents": 100}'
    assert not session.closed


def test_open_accepts_mapping(plugin):
    session = plugin.open({"start": 1, "maxEvents": 2})
    assert session.max_events == 2


def test_open_missing_max_events(plugin):
    with pytest.raises(MissingParameter, match="maxEvents") as exc_info:
        plugin.open('{"start": 5}')
    assert exc_info.value.key == "maxEvents"


def test_open_missing_start_reported_first(plugin):
    with pytest.raises(MissingParameter) as exc_info:
        plugin.open("{}")
    assert exc_info.value.key == "start"


@pytest.mark.parametrize("raw", ["", "garbage", "[]", "null", '{"start": "a", "maxEvents": 1}',
                                 '{"start": -1, "maxEvents": 1}', '{"start": "a"}'])
def test_open_invalid_params(plugin, raw):
    with pytest.raises(InvalidParams) as exc_info:
        plugin.open(raw)
    assert not isinstance(exc_info.value, MissingParameter)


def test_describe_fields_schema(plugin):
    fields = plugin.describe_fields()
    assert [(f.id, f.name, f.type, f.arg_required) for f in fields] == [
        (0, "dummy.divisible", FieldType.UINT64, True),
        (1, "dummy.value", FieldType.UINT64, False),
        (2, "dummy.strvalue", FieldType.STRING, False),
    ]
    assert fields == plugin.describe_fields()
    assert fields[0].id == FieldId.DIVISIBLE


def test_field_by_name(plugin):
    assert plugin.field_by_name("dummy.value").id == 1
    assert plugin.field_by_name("dummy.nope") is None


@pytest.mark.parametrize("payload", [b"42", b"0", b"18446744073709551615", b"007"])
def test_render_event(plugin, payload):
    assert plugin.render_event(payload) == '{"sample": "' + payload.decode() + '"}'


def test_render_event_from_stream(plugin):
    import io
    assert plugin.render_event(io.BytesIO(b"123")) == '{"sample": "123"}'


def test_render_event_unreadable(plugin):
    class Broken:
        def read(self):
            raise OSError("gone")

    with pytest.raises(MalformedPayload):
        plugin.render_event(Broken())

    with pytest.raises(MalformedPayload):
        plugin.render_event(b"\xff\xfe")
