"""Known device features and limits, with the defaults the API guarantees.

A requested limit equal to its default is redundant and is dropped when
descriptors are canonicalized, so such requests share a pooled device with
requests that omit the limit entirely.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LimitClass(Enum):
    """How a limit compares: larger is better, or smaller is better."""
    MAXIMUM = "maximum"
    ALIGNMENT = "alignment"


@dataclass(frozen=True)
class LimitInfo:
    default: int
    limit_class: LimitClass = LimitClass.MAXIMUM


# Canonical order; canonicalized descriptors list limits in this order.
LIMIT_INFO: dict[str, LimitInfo] = {
    "max_texture_dimension_1d": LimitInfo(8192),
    "max_texture_dimension_2d": LimitInfo(8192),
    "max_texture_dimension_3d": LimitInfo(2048),
    "max_texture_array_layers": LimitInfo(256),
    "max_bind_groups": LimitInfo(4),
    "max_bind_groups_plus_vertex_buffers": LimitInfo(24),
    "max_bindings_per_bind_group": LimitInfo(1000),
    "max_dynamic_uniform_buffers_per_pipeline_layout": LimitInfo(8),
    "max_dynamic_storage_buffers_per_pipeline_layout": LimitInfo(4),
    "max_sampled_textures_per_shader_stage": LimitInfo(16),
    "max_samplers_per_shader_stage": LimitInfo(16),
    "max_storage_buffers_per_shader_stage": LimitInfo(8),
    "max_storage_textures_per_shader_stage": LimitInfo(4),
    "max_uniform_buffers_per_shader_stage": LimitInfo(12),
    "max_uniform_buffer_binding_size": LimitInfo(65536),
    "max_storage_buffer_binding_size": LimitInfo(134217728),
    "min_uniform_buffer_offset_alignment": LimitInfo(256, LimitClass.ALIGNMENT),
    "min_storage_buffer_offset_alignment": LimitInfo(256, LimitClass.ALIGNMENT),
    "max_vertex_buffers": LimitInfo(8),
    "max_buffer_size": LimitInfo(268435456),
    "max_vertex_attributes": LimitInfo(16),
    "max_vertex_buffer_array_stride": LimitInfo(2048),
    "max_inter_stage_shader_variables": LimitInfo(16),
    "max_color_attachments": LimitInfo(8),
    "max_color_attachment_bytes_per_sample": LimitInfo(32),
    "max_compute_workgroup_storage_size": LimitInfo(16384),
    "max_compute_invocations_per_workgroup": LimitInfo(256),
    "max_compute_workgroup_size_x": LimitInfo(256),
    "max_compute_workgroup_size_y": LimitInfo(256),
    "max_compute_workgroup_size_z": LimitInfo(64),
    "max_compute_workgroups_per_dimension": LimitInfo(65535),
}

KNOWN_FEATURES = frozenset({
    "depth-clip-control",
    "depth32float-stencil8",
    "texture-compression-bc",
    "texture-compression-etc2",
    "texture-compression-astc",
    "timestamp-query",
    "indirect-first-instance",
    "shader-f16",
    "rg11b10ufloat-renderable",
    "bgra8unorm-storage",
    "float32-filterable",
})


def default_limits() -> dict[str, int]:
    return {name: info.default for name, info in LIMIT_INFO.items()}


def limit_satisfied(name: str, requested: int, supported: int) -> bool:
    """True if an adapter supporting ``supported`` can grant ``requested``."""
    if LIMIT_INFO[name].limit_class is LimitClass.ALIGNMENT:
        return requested >= supported
    return requested <= supported
