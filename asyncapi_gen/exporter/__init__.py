from .document_exporter import (
    export_document,
    load_document,
    read_document,
    to_json,
    to_yaml,
    write_document,
)

__all__ = [
    "export_document",
    "load_document",
    "read_document",
    "to_json",
    "to_yaml",
    "write_document",
]
