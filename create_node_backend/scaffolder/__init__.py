"""create-node-backend scaffolder -- renders and writes the project tree.

The catalog turns a ``ProjectConfig`` into an in-memory ``FileSet`` and a
``DependencyManifest``; the writer materialises the file set on disk.

Quick usage::

    from create_node_backend.scaffolder import ProjectWriter, build_file_set

    files = build_file_set(config)
    report = await ProjectWriter().materialize(cwd / config.name, files)
"""

from create_node_backend.scaffolder.catalog import (
    DependencyManifest,
    FileSet,
    build_file_set,
    dependency_manifest,
)
from create_node_backend.scaffolder.templates import TemplateRenderer
from create_node_backend.scaffolder.writer import ProjectWriter, WriteReport

__all__ = [
    "DependencyManifest",
    "FileSet",
    "ProjectWriter",
    "TemplateRenderer",
    "WriteReport",
    "build_file_set",
    "dependency_manifest",
]
