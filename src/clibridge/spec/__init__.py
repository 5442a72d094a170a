"""Swagger document generation for command trees."""

from clibridge.spec.generator import ARGV_PARAM, generate_spec, render_spec

__all__ = ["ARGV_PARAM", "generate_spec", "render_spec"]
