"""Bundle layer — compile templates and load them as artifacts."""

from papyre.bundle.artifact import Artifact, ArtifactLoader, RenderLookup
from papyre.bundle.compiler import Bundle, CompileResult, TemplateCompiler

__all__ = [
    "Artifact",
    "ArtifactLoader",
    "Bundle",
    "CompileResult",
    "RenderLookup",
    "TemplateCompiler",
]
