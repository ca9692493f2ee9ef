"""
Load process and decision resources from disk.

Supported formats:
- BPMN 2.0 XML (``.bpmn``, ``.bpmn20.xml``)
- DMN 1.x XML (``.dmn``, ``.dmn11.xml``)
- YAML or JSON documents with ``processes`` or ``decisions`` lists
"""

import json
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from procov.definitions.models import (
    DecisionModel,
    DecisionResource,
    FlowNodeModel,
    ProcessModel,
    ProcessResource,
    SequenceFlowModel,
)
from procov.errors import DefinitionLoadError

CAMUNDA_NS = "http://camunda.org/schema/1.0/bpmn"

# BPMN elements that are flow nodes
FLOW_NODE_TAGS = frozenset(
    {
        "task",
        "userTask",
        "serviceTask",
        "scriptTask",
        "sendTask",
        "receiveTask",
        "manualTask",
        "businessRuleTask",
        "callActivity",
        "subProcess",
        "transaction",
        "adHocSubProcess",
        "startEvent",
        "endEvent",
        "intermediateCatchEvent",
        "intermediateThrowEvent",
        "boundaryEvent",
        "exclusiveGateway",
        "inclusiveGateway",
        "parallelGateway",
        "eventBasedGateway",
        "complexGateway",
    }
)

# Flow nodes whose children are flow nodes of the same process
CONTAINER_TAGS = frozenset({"subProcess", "transaction", "adHocSubProcess"})

BPMN_SUFFIXES = (".bpmn", ".bpmn20.xml")
DMN_SUFFIXES = (".dmn", ".dmn11.xml")
DOCUMENT_SUFFIXES = (".yaml", ".yml", ".json")
SUPPORTED_SUFFIXES = (*BPMN_SUFFIXES, *DMN_SUFFIXES, *DOCUMENT_SUFFIXES)


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _collect_process_content(
    parent: ET.Element,
    flow_nodes: list[FlowNodeModel],
    sequence_flows: list[SequenceFlowModel],
) -> None:
    for child in parent:
        tag = _local_name(child.tag)
        if tag in FLOW_NODE_TAGS:
            flow_nodes.append(
                FlowNodeModel(id=child.attrib["id"], type=tag, name=child.attrib.get("name"))
            )
            if tag in CONTAINER_TAGS:
                _collect_process_content(child, flow_nodes, sequence_flows)
        elif tag == "sequenceFlow":
            sequence_flows.append(
                SequenceFlowModel(
                    id=child.attrib["id"],
                    source=child.attrib["sourceRef"],
                    target=child.attrib["targetRef"],
                )
            )


class DefinitionLoader:
    """Load ProcessResource and DecisionResource objects."""

    @classmethod
    def from_file(cls, path: str | Path) -> ProcessResource | DecisionResource:
        """
        Load a resource, picking the format from the file suffix.

        Args:
            path: Path to a BPMN, DMN, YAML or JSON file

        Returns:
            The parsed resource, named after the file
        """
        path = Path(path)
        if not path.exists():
            msg = f"Definition file not found: {path}"
            raise FileNotFoundError(msg)

        name = path.name.lower()
        if not name.endswith(SUPPORTED_SUFFIXES):
            msg = f"Unsupported definition format: {path.suffix}"
            raise DefinitionLoadError(msg)

        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            msg = f"Definition file {path.name} is not UTF-8 text: {e}"
            raise DefinitionLoadError(msg) from e

        if name.endswith(BPMN_SUFFIXES):
            return cls.from_bpmn(text, resource_name=path.name)
        if name.endswith(DMN_SUFFIXES):
            return cls.from_dmn(text, resource_name=path.name)

        try:
            if name.endswith(".json"):
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            msg = f"Malformed document {path.name}: {e}"
            raise DefinitionLoadError(msg) from e
        return cls.from_dict(data or {}, resource_name=path.name)

    @classmethod
    def from_directory(cls, path: str | Path) -> list[ProcessResource | DecisionResource]:
        """Load every supported resource below a directory, sorted by path."""
        root = Path(path)
        return [
            cls.from_file(file)
            for file in sorted(root.rglob("*"))
            if file.is_file() and file.name.lower().endswith(SUPPORTED_SUFFIXES)
        ]

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], resource_name: str | None = None
    ) -> ProcessResource | DecisionResource:
        """
        Create a resource from a dictionary.

        A document with a ``decisions`` list is a decision resource; anything
        else is read as a process resource with a ``processes`` list.
        """
        if not isinstance(data, dict):
            msg = "Definition document must be a mapping"
            raise DefinitionLoadError(msg)

        resource_name = data.get("resource_name") or resource_name
        if not resource_name:
            msg = "Definition document has no resource_name"
            raise DefinitionLoadError(msg)

        try:
            if "decisions" in data:
                return DecisionResource(
                    resource_name=resource_name,
                    id=data.get("id"),
                    name=data.get("name"),
                    decisions=[DecisionModel(**d) for d in data["decisions"]],
                )
            return ProcessResource(
                resource_name=resource_name,
                processes=[ProcessModel(**p) for p in data.get("processes", [])],
            )
        except (TypeError, ValidationError) as e:
            msg = f"Invalid definition document {resource_name}: {e}"
            raise DefinitionLoadError(msg) from e

    @classmethod
    def from_bpmn(cls, xml_text: str, resource_name: str) -> ProcessResource:
        """Parse a BPMN 2.0 document."""
        root = cls._parse_xml(xml_text, resource_name)

        processes = []
        for element in root:
            if _local_name(element.tag) != "process":
                continue
            flow_nodes: list[FlowNodeModel] = []
            sequence_flows: list[SequenceFlowModel] = []
            try:
                _collect_process_content(element, flow_nodes, sequence_flows)
                processes.append(
                    ProcessModel(
                        id=element.attrib["id"],
                        name=element.attrib.get("name"),
                        executable=element.attrib.get("isExecutable", "false").lower() == "true",
                        version_tag=element.attrib.get(f"{{{CAMUNDA_NS}}}versionTag"),
                        flow_nodes=flow_nodes,
                        sequence_flows=sequence_flows,
                    )
                )
            except KeyError as e:
                msg = f"Missing attribute {e} in {resource_name}"
                raise DefinitionLoadError(msg) from e

        return ProcessResource(resource_name=resource_name, processes=processes)

    @classmethod
    def from_dmn(cls, xml_text: str, resource_name: str) -> DecisionResource:
        """Parse a DMN document. Only decisions with a decision table are kept."""
        root = cls._parse_xml(xml_text, resource_name)

        decisions = []
        for element in root:
            if _local_name(element.tag) != "decision":
                continue
            table = next(
                (child for child in element if _local_name(child.tag) == "decisionTable"),
                None,
            )
            if table is None:
                continue
            rules = [
                rule.attrib["id"]
                for rule in table
                if _local_name(rule.tag) == "rule" and "id" in rule.attrib
            ]
            required = [
                req.attrib["href"].lstrip("#")
                for req in element.iter()
                if _local_name(req.tag) == "requiredDecision" and "href" in req.attrib
            ]
            if "id" not in element.attrib:
                msg = f"Decision without id in {resource_name}"
                raise DefinitionLoadError(msg)
            decisions.append(
                DecisionModel(
                    id=element.attrib["id"],
                    name=element.attrib.get("name"),
                    version_tag=element.attrib.get(f"{{{CAMUNDA_NS}}}versionTag"),
                    rules=rules,
                    required_decisions=required,
                )
            )

        return DecisionResource(
            resource_name=resource_name,
            id=root.attrib.get("id"),
            name=root.attrib.get("name"),
            decisions=decisions,
        )

    @staticmethod
    def _parse_xml(xml_text: str, resource_name: str) -> ET.Element:
        try:
            return ET.fromstring(xml_text)
        except ET.ParseError as e:
            msg = f"Malformed XML in {resource_name}: {e}"
            raise DefinitionLoadError(msg) from e
