"""JSON-API rendering of the document graph.

Only a subset of JSON-API is used. A serialized graph looks like::

    {
        "data": {
            "type": "crate",
            "id": "example",
            "attributes": {"docs": "docs go here"},
            "relationships": {
                "modules": {"data": [{"type": "module", "id": "example::example_module"}]}
            }
        },
        "included": [
            {
                "type": "module",
                "id": "example::example_module",
                "attributes": {"docs": "docs go here", "name": "example_module"}
            }
        ]
    }

A relation's ``data`` is a list for to-many relations and a single object for
to-one relations such as ``parent``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .models import Data, Document, Documentation


class DataModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type_: str = Field(alias="type")
    id: str


class RelationshipModel(BaseModel):
    data: Union[List[DataModel], DataModel]


class DocumentModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type_: str = Field(alias="type")
    id: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    relationships: Optional[Dict[str, RelationshipModel]] = None


class DocumentationModel(BaseModel):
    data: DocumentModel
    included: List[DocumentModel] = Field(default_factory=list)


def to_model(documentation: Documentation) -> DocumentationModel:
    return DocumentationModel(
        data=_document_model(documentation.data),
        included=[_document_model(document) for document in documentation.included],
    )


def serialize(documentation: Documentation) -> Dict[str, Any]:
    """Return the JSON-API mapping for ``documentation``."""
    return to_model(documentation).model_dump(by_alias=True, exclude_none=True)


def to_json(documentation: Documentation, *, indent: int | None = None) -> str:
    return to_model(documentation).model_dump_json(by_alias=True, exclude_none=True, indent=indent)


def parse(payload: Union[str, bytes, Mapping[str, Any]]) -> Documentation:
    """Rebuild a document graph from its serialized form."""
    if isinstance(payload, (str, bytes)):
        model = DocumentationModel.model_validate_json(payload)
    else:
        model = DocumentationModel.model_validate(payload)
    return Documentation(
        data=_document_from_model(model.data),
        included=[_document_from_model(document) for document in model.included],
    )


def _document_model(document: Document) -> DocumentModel:
    relationships: Optional[Dict[str, RelationshipModel]] = None
    if document.relationships:
        relationships = {}
        for relation, target in document.relationships.items():
            if isinstance(target, Data):
                data: Union[List[DataModel], DataModel] = _data_model(target)
            else:
                data = [_data_model(item) for item in target]
            relationships[relation] = RelationshipModel(data=data)
    return DocumentModel(
        type_=document.type,
        id=document.id,
        attributes=dict(document.attributes),
        relationships=relationships,
    )


def _data_model(data: Data) -> DataModel:
    return DataModel(type_=data.type, id=data.id)


def _document_from_model(model: DocumentModel) -> Document:
    document = Document(type=model.type_, id=model.id, attributes=dict(model.attributes))
    for relation, relationship in (model.relationships or {}).items():
        if isinstance(relationship.data, list):
            document.relationships[relation] = [
                Data(type=item.type_, id=item.id) for item in relationship.data
            ]
        else:
            document.relationships[relation] = Data(
                type=relationship.data.type_, id=relationship.data.id
            )
    return document


__all__ = [
    "DataModel",
    "DocumentModel",
    "DocumentationModel",
    "RelationshipModel",
    "parse",
    "serialize",
    "to_json",
    "to_model",
]
