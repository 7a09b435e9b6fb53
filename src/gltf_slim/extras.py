"""
Pipeline extras: the transient ``extras._pipeline`` side channel.

Elements that carry a binary payload (buffers, images, shaders) keep their raw
bytes in ``extras._pipeline.source`` while the asset is being processed. None
of it may reach the serialized output.
"""

from __future__ import annotations

from typing import Any, cast

from gltf_slim.model import Gltf, PipelineExtras, iter_elements

PIPELINE_KEY = "_pipeline"

# Collections whose elements carry raw payloads
_PAYLOAD_CATEGORIES: tuple[str, ...] = ("buffers", "images", "shaders")


def get_pipeline_extras(element: dict[str, Any]) -> PipelineExtras:
    """
    Return the element's pipeline extras, creating them if needed.

    ``extras`` that is not an object (a string, list or number) is set aside
    in ``replaced_extras`` and put back by ``remove_pipeline_extras``.
    """
    extras = element.get("extras")
    if isinstance(extras, dict):
        pipeline = extras.setdefault(PIPELINE_KEY, {})
    else:
        pipeline = {"delete_extras": True}
        if extras is not None:
            pipeline["replaced_extras"] = extras
        element["extras"] = {PIPELINE_KEY: pipeline}
    return cast(PipelineExtras, pipeline)


def get_source(element: dict[str, Any]) -> bytes | None:
    """Raw payload of an element, or None if it has not been loaded."""
    extras = element.get("extras")
    pipeline = extras.get(PIPELINE_KEY) if isinstance(extras, dict) else None
    if not isinstance(pipeline, dict):
        return None
    return pipeline.get("source")


def set_source(element: dict[str, Any], source: bytes, extension: str | None = None) -> None:
    """Attach a raw payload (and optionally its file extension) to an element."""
    pipeline = get_pipeline_extras(element)
    pipeline["source"] = bytes(source)
    if extension is not None:
        pipeline["extension"] = extension


def add_pipeline_extras(gltf: Gltf) -> Gltf:
    """Add pipeline extras to the root and to every payload-carrying element."""
    get_pipeline_extras(gltf)
    for category in _PAYLOAD_CATEGORIES:
        for _, element in iter_elements(gltf, category):
            if isinstance(element, dict):
                get_pipeline_extras(element)
    return gltf


def _remove_extras(element: dict[str, Any]) -> None:
    extras = element.get("extras")
    if not isinstance(extras, dict):
        return
    pipeline = extras.pop(PIPELINE_KEY, None)
    if isinstance(pipeline, dict) and "replaced_extras" in pipeline:
        element["extras"] = pipeline["replaced_extras"]
        return
    delete_extras = isinstance(pipeline, dict) and pipeline.get("delete_extras", False)
    if delete_extras and not extras:
        del element["extras"]


def remove_pipeline_extras(gltf: Gltf) -> Gltf:
    """Strip pipeline extras everywhere they can appear."""
    for category in _PAYLOAD_CATEGORIES:
        for _, element in iter_elements(gltf, category):
            if isinstance(element, dict):
                _remove_extras(element)
    _remove_extras(gltf)
    return gltf
