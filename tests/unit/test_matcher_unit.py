from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from terraspec.addresses import Address
from terraspec.diagnostics import Severity
from terraspec.matcher import Matcher, scalars_equal, validate
from terraspec.plan import PlanAccessor, PlanSnapshot
from terraspec.schema import SchemaRegistry
from terraspec.spec.model import Assertion
from terraspec.spec.parser import parse_spec
from terraspec.values import BlockSet, KeyedMap, OrderedList, Scalar
from tests.helpers.plan_helpers import plan_document, schema_document, set_resource_values

_REGISTRY = SchemaRegistry.from_provider_schemas(schema_document(), outputs={"ip"})


def _accessor(document=None):
    return PlanAccessor(PlanSnapshot(document or plan_document()), _REGISTRY)


def _run(spec_text, document=None):
    tree, diagnostics = parse_spec(spec_text, _REGISTRY, filename="case.tfspec")
    assert diagnostics == []
    return validate(tree, _accessor(document))


def _single_resource_plan(type_name, name, values):
    return {
        "planned_values": {
            "root_module": {"resources": [{"mode": "managed", "type": type_name, "name": name, "values": values}]}
        }
    }


def test_matching_scalar_yields_one_info():
    diagnostics = _run('assert "aws_instance" "web" {\n  ami = "ami-123"\n}\n')
    assert len(diagnostics) == 1
    (diagnostic,) = diagnostics
    assert diagnostic.severity is Severity.INFO
    assert diagnostic.path.render() == "ami"
    assert diagnostic.target == "aws_instance.web"


def test_mismatching_scalar_yields_one_error_with_both_values():
    document = set_resource_values(plan_document(), "aws_instance.web", ami="ami-999")
    diagnostics = _run('assert "aws_instance" "web" {\n  ami = "ami-123"\n}\n', document)
    assert len(diagnostics) == 1
    (diagnostic,) = diagnostics
    assert diagnostic.is_error
    assert diagnostic.path.render() == "ami"
    assert diagnostic.detail == 'expected "ami-123" but got "ami-999"'


def test_missing_target_is_one_root_error():
    diagnostics = _run('assert "aws_instance" "missing" {\n  ami = "ami-123"\n}\n')
    assert len(diagnostics) == 1
    assert diagnostics[0].is_error
    assert diagnostics[0].path.is_root()
    assert diagnostics[0].address() == "aws_instance.missing"
    assert diagnostics[0].detail == "not present in the plan"


def test_missing_target_lists_indexed_instances():
    diagnostics = _run('assert "aws_instance" "worker" {}\n')
    assert diagnostics[0].detail == (
        "not present in the plan (instances found: aws_instance.worker[0], aws_instance.worker[1])"
    )


def test_indexed_instances_resolve():
    diagnostics = _run('assert "aws_instance" "worker[1]" {\n  instance_type = "t3.large"\n}\n')
    assert [d.severity for d in diagnostics] == [Severity.INFO]


def test_partial_match_ignores_unasserted_keys():
    text = """
assert "aws_instance" "web" {
  tags = {
    env = "prod"
  }
  root_block_device {
    volume_size = 8
  }
}
"""
    diagnostics = _run(text)
    assert [d.address() for d in diagnostics] == [
        "aws_instance.web.tags.env",
        "aws_instance.web.root_block_device.volume_size",
    ]
    assert not diagnostics.has_errors()


def test_schema_numeric_attribute_accepts_string_spelling():
    diagnostics = _run('assert "aws_instance" "web" {\n  cpu_count = "2"\n}\n')
    assert not diagnostics.has_errors()


def test_repeated_block_length_mismatch_short_circuits():
    text = """
assert "aws_instance" "web" {
  ebs_block_device {
    device_name = "/dev/sdb"
  }
}
"""
    diagnostics = _run(text)
    assert len(diagnostics) == 1
    assert diagnostics[0].address() == "aws_instance.web.ebs_block_device"
    assert diagnostics[0].detail == "expected 1 element(s) but got 2"


def test_repeated_blocks_compare_by_position():
    text = """
assert "aws_security_group" "fw" {
  ingress {
    from_port = 22
  }
  ingress {
    from_port = 80
  }
  ingress {
    from_port = 8443
    tags = {
      env = "prod"
    }
  }
}
"""
    diagnostics = _run(text)
    errors = diagnostics.errors()
    assert len(errors) == 1
    assert errors[0].address() == "aws_security_group.fw.ingress[2].from_port"
    assert errors[0].detail == "expected 8443 but got 443"
    assert "aws_security_group.fw.ingress[2].tags.env" in [d.address() for d in diagnostics]


def test_unknown_attribute_and_missing_map_key():
    text = """
assert "aws_instance" "web" {
  colour = "red"
  tags = {
    owner = "me"
  }
}
"""
    diagnostics = _run(text)
    assert [(d.address(), d.detail) for d in diagnostics] == [
        ("aws_instance.web.colour", 'unknown attribute "colour"'),
        ("aws_instance.web.tags.owner", 'key "owner" is not present in the plan'),
    ]


def test_null_handling():
    text = """
assert "aws_instance" "web" {
  id         = "i-1"
  monitoring = null
}
"""
    diagnostics = _run(text)
    assert [d.detail for d in diagnostics] == [
        'expected "i-1" but the plan value is null or only known after apply',
        "expected null but got true",
    ]


def test_expected_null_on_absent_map_key_matches():
    text = """
assert "aws_instance" "web" {
  monitoring = true
  tags = {
    owner = null
  }
}
"""
    diagnostics = _run(text)
    assert [(d.address(), d.severity) for d in diagnostics] == [
        ("aws_instance.web.monitoring", Severity.INFO),
        ("aws_instance.web.tags.owner", Severity.INFO),
    ]
    assert diagnostics[1].detail == "null"


def test_shape_mismatch_does_not_descend():
    document = set_resource_values(plan_document(), "aws_instance.web", tags="oops")
    diagnostics = _run('assert "aws_instance" "web" {\n  tags = { env = "prod" }\n}\n', document)
    assert len(diagnostics) == 1
    assert diagnostics[0].address() == "aws_instance.web.tags"
    assert diagnostics[0].detail.startswith("expected a map value")


def test_outputs_and_reject_blocks():
    text = """
assert "output" "ip" {
  value     = "10.0.0.1"
  sensitive = false
}
reject "aws_eip" "web" {}
reject "aws_instance" "web" {}
"""
    diagnostics = _run(text)
    assert [(d.severity, d.address()) for d in diagnostics] == [
        (Severity.INFO, "output.ip.value"),
        (Severity.INFO, "output.ip.sensitive"),
        (Severity.INFO, "aws_eip.web"),
        (Severity.ERROR, "aws_instance.web"),
    ]


def test_duplicate_assertions_are_checked_independently():
    text = 'assert "aws_instance" "web" {\n  ami = "ami-123"\n}\n' * 2
    diagnostics = _run(text)
    assert len(diagnostics) == 2


def test_scalar_comparison_rules():
    assert scalars_equal("5", 5, "number")
    assert scalars_equal("1.50", 1.5, "number")
    assert not scalars_equal("abc", 5, "number")
    assert not scalars_equal("5", "05", "string")
    assert scalars_equal(5, "5", "string")
    assert scalars_equal("true", True, "bool")
    assert not scalars_equal("yes", True, "bool")
    assert scalars_equal(2, 2.0, "dynamic")
    assert not scalars_equal("2", 2, "dynamic")


@settings(suppress_health_check=[HealthCheck.too_slow])
@given(
    values=st.dictionaries(
        st.sampled_from(["ami", "instance_type", "cpu_count", "monitoring", "extra"]),
        st.one_of(st.none(), st.text(max_size=5), st.integers(), st.booleans()),
    )
)
def test_empty_assertion_always_matches(values):
    accessor = PlanAccessor(PlanSnapshot(_single_resource_plan("aws_instance", "web", values)), _REGISTRY)
    assertion = Assertion(Address.from_labels("aws_instance", "web"), KeyedMap())
    assert Matcher(accessor).check(assertion) == []


@settings(suppress_health_check=[HealthCheck.too_slow])
@given(
    expected=st.lists(st.text(max_size=4), max_size=6),
    actual=st.lists(st.text(max_size=4), max_size=6),
)
def test_sequence_length_mismatch_is_a_single_error(expected, actual):
    assume(len(expected) != len(actual))
    accessor = PlanAccessor(
        PlanSnapshot(_single_resource_plan("aws_instance", "web", {"security_groups": actual})), _REGISTRY
    )
    value = KeyedMap.of({"security_groups": OrderedList(tuple(Scalar(item) for item in expected))})
    diagnostics = Matcher(accessor).check(Assertion(Address.from_labels("aws_instance", "web"), value))
    assert len(diagnostics) == 1
    assert diagnostics[0].is_error
    assert diagnostics[0].path.render() == "security_groups"


@settings(max_examples=50)
@given(data=st.data(), size=st.integers(min_value=1, max_value=6))
def test_mismatch_inside_repeated_block_is_path_addressed(data, size):
    position = data.draw(st.integers(min_value=0, max_value=size - 1))
    rules = [{"from_port": index, "to_port": index, "protocol": "tcp", "tags": {"env": "prod"}} for index in range(size)]
    accessor = PlanAccessor(PlanSnapshot(_single_resource_plan("aws_security_group", "fw", {"ingress": rules})), _REGISTRY)
    blocks = tuple(
        KeyedMap.of({"tags": KeyedMap.of({"env": Scalar("dev" if index == position else "prod")})})
        for index in range(size)
    )
    assertion = Assertion(Address.from_labels("aws_security_group", "fw"), KeyedMap.of({"ingress": BlockSet(blocks)}))
    errors = Matcher(accessor).check(assertion).errors()
    assert [d.address() for d in errors] == [f"aws_security_group.fw.ingress[{position}].tags.env"]


@given(ami=st.sampled_from(["ami-123", "ami-999"]), cpu=st.integers(min_value=0, max_value=10))
def test_validation_is_idempotent(ami, cpu):
    document = set_resource_values(plan_document(), "aws_instance.web", ami=ami, cpu_count=cpu)
    tree, _ = parse_spec(
        'assert "aws_instance" "web" {\n  ami = "ami-123"\n  cpu_count = 3\n}\nassert "aws_instance" "nope" {}\n',
        _REGISTRY,
    )
    accessor = _accessor(document)
    first = validate(tree, accessor)
    second = validate(tree, accessor)
    assert first == second
    assert [str(d) for d in first] == [str(d) for d in second]
