import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

AWS = "registry.terraform.io/hashicorp/aws"

_SCHEMA_DOCUMENT: Dict[str, Any] = {
    "format_version": "1.0",
    "provider_schemas": {
        AWS: {
            "provider": {"version": 0, "block": {"attributes": {"region": {"type": "string", "optional": True}}}},
            "resource_schemas": {
                "aws_instance": {
                    "version": 1,
                    "block": {
                        "attributes": {
                            "id": {"type": "string", "computed": True},
                            "ami": {"type": "string", "required": True},
                            "instance_type": {"type": "string", "required": True},
                            "cpu_count": {"type": "number", "optional": True},
                            "monitoring": {"type": "bool", "optional": True},
                            "tags": {"type": ["map", "string"], "optional": True},
                            "security_groups": {"type": ["list", "string"], "optional": True},
                        },
                        "block_types": {
                            "ebs_block_device": {
                                "nesting_mode": "list",
                                "block": {
                                    "attributes": {
                                        "device_name": {"type": "string", "required": True},
                                        "volume_size": {"type": "number", "optional": True},
                                    }
                                },
                            },
                            "root_block_device": {
                                "nesting_mode": "single",
                                "block": {
                                    "attributes": {
                                        "volume_size": {"type": "number", "optional": True},
                                        "encrypted": {"type": "bool", "optional": True},
                                    }
                                },
                            },
                        },
                    },
                },
                "aws_security_group": {
                    "version": 1,
                    "block": {
                        "attributes": {"name": {"type": "string", "optional": True}},
                        "block_types": {
                            "ingress": {
                                "nesting_mode": "set",
                                "block": {
                                    "attributes": {
                                        "from_port": {"type": "number", "required": True},
                                        "to_port": {"type": "number", "required": True},
                                        "protocol": {"type": "string", "required": True},
                                        "tags": {"type": ["map", "string"], "optional": True},
                                    }
                                },
                            }
                        },
                    },
                },
                "aws_eip": {
                    "version": 0,
                    "block": {"attributes": {"instance": {"type": "string", "optional": True}}},
                },
            },
            "data_source_schemas": {
                "aws_ami": {
                    "version": 0,
                    "block": {
                        "attributes": {
                            "id": {"type": "string", "computed": True},
                            "name": {"type": "string", "optional": True},
                            "most_recent": {"type": "bool", "optional": True},
                        }
                    },
                }
            },
        }
    },
}

_PLAN_DOCUMENT: Dict[str, Any] = {
    "format_version": "1.2",
    "terraform_version": "1.6.0",
    "planned_values": {
        "outputs": {"ip": {"sensitive": False, "value": "10.0.0.1"}},
        "root_module": {
            "resources": [
                {
                    "address": "aws_instance.web",
                    "mode": "managed",
                    "type": "aws_instance",
                    "name": "web",
                    "provider_name": AWS,
                    "schema_version": 1,
                    "values": {
                        "ami": "ami-123",
                        "instance_type": "t3.micro",
                        "cpu_count": 2,
                        "monitoring": True,
                        "tags": {"env": "prod", "team": "core"},
                        "security_groups": ["sg-1", "sg-2"],
                        "ebs_block_device": [
                            {"device_name": "/dev/sdb", "volume_size": 10},
                            {"device_name": "/dev/sdc", "volume_size": 20},
                        ],
                        "root_block_device": [{"volume_size": 8, "encrypted": True}],
                        "id": None,
                    },
                },
                {
                    "address": "aws_instance.worker[0]",
                    "mode": "managed",
                    "type": "aws_instance",
                    "name": "worker",
                    "index": 0,
                    "provider_name": AWS,
                    "values": {"ami": "ami-123", "instance_type": "t3.small"},
                },
                {
                    "address": "aws_instance.worker[1]",
                    "mode": "managed",
                    "type": "aws_instance",
                    "name": "worker",
                    "index": 1,
                    "provider_name": AWS,
                    "values": {"ami": "ami-123", "instance_type": "t3.large"},
                },
                {
                    "address": "aws_security_group.fw",
                    "mode": "managed",
                    "type": "aws_security_group",
                    "name": "fw",
                    "provider_name": AWS,
                    "values": {
                        "name": "fw",
                        "ingress": [
                            {"from_port": 22, "to_port": 22, "protocol": "tcp", "tags": {"env": "dev"}},
                            {"from_port": 80, "to_port": 80, "protocol": "tcp", "tags": {"env": "prod"}},
                            {"from_port": 443, "to_port": 443, "protocol": "tcp", "tags": {"env": "prod"}},
                        ],
                    },
                },
            ],
            "child_modules": [
                {
                    "address": "module.network",
                    "resources": [
                        {
                            "address": "module.network.aws_security_group.internal",
                            "mode": "managed",
                            "type": "aws_security_group",
                            "name": "internal",
                            "provider_name": AWS,
                            "values": {"name": "internal", "ingress": []},
                        }
                    ],
                }
            ],
        },
    },
    "prior_state": {
        "format_version": "1.0",
        "values": {
            "root_module": {
                "resources": [
                    {
                        "address": "data.aws_ami.ubuntu",
                        "mode": "data",
                        "type": "aws_ami",
                        "name": "ubuntu",
                        "provider_name": AWS,
                        "values": {"id": "ami-123", "name": "ubuntu-jammy", "most_recent": True},
                    }
                ]
            }
        },
    },
    "configuration": {
        "root_module": {
            "outputs": {"ip": {"expression": {"references": ["aws_instance.web.private_ip"]}}},
            "resources": [
                {"address": "aws_instance.web", "mode": "managed", "type": "aws_instance", "name": "web"},
                {"address": "aws_instance.worker", "mode": "managed", "type": "aws_instance", "name": "worker"},
                {"address": "aws_security_group.fw", "mode": "managed", "type": "aws_security_group", "name": "fw"},
                {"address": "data.aws_ami.ubuntu", "mode": "data", "type": "aws_ami", "name": "ubuntu"},
            ],
            "module_calls": {
                "network": {
                    "source": "./network",
                    "module": {
                        "resources": [
                            {
                                "address": "aws_security_group.internal",
                                "mode": "managed",
                                "type": "aws_security_group",
                                "name": "internal",
                            }
                        ]
                    },
                }
            },
        }
    },
}

PASSING_SPEC = """
assert "aws_instance" "web" {
  ami           = "ami-123"
  instance_type = "t3.micro"

  tags = {
    env = "prod"
  }
}

assert "output" "ip" {
  value = "10.0.0.1"
}
"""

FAILING_SPEC = """
assert "aws_instance" "web" {
  ami = "ami-999"
}
"""


def schema_document() -> Dict[str, Any]:
    return copy.deepcopy(_SCHEMA_DOCUMENT)


def plan_document() -> Dict[str, Any]:
    return copy.deepcopy(_PLAN_DOCUMENT)


def set_resource_values(document: Dict[str, Any], address: str, **values: Any) -> Dict[str, Any]:
    for entry in document["planned_values"]["root_module"]["resources"]:
        if entry["address"] == address:
            entry["values"].update(values)
            return document
    raise KeyError(address)


def write_json(path: Path, payload: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path


def write_case(
    spec_root: Path,
    name: Optional[str],
    spec_text: str,
    *,
    tfvars: Optional[str] = None,
    plan: Optional[Dict[str, Any]] = None,
) -> Path:
    """Create one test case directory; ``name=None`` writes into ``spec_root``."""

    directory = spec_root if name is None else spec_root / name
    directory.mkdir(parents=True, exist_ok=True)
    stem = name or spec_root.name
    (directory / f"{stem}.tfspec").write_text(spec_text, encoding="utf-8")
    if tfvars is not None:
        (directory / f"{stem}.tfvars").write_text(tfvars, encoding="utf-8")
    if plan is not None:
        write_json(directory / "plan.json", plan)
    return directory


def write_config(config_dir: Path, *, plan: Optional[Dict[str, Any]] = None) -> Path:
    """Write the plan-json fixtures the static engine reads."""

    config_dir.mkdir(parents=True, exist_ok=True)
    write_json(config_dir / "plan.json", plan if plan is not None else plan_document())
    write_json(config_dir / "schemas.json", schema_document())
    return config_dir
