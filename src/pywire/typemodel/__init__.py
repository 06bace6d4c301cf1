"""
Type model: parsed source, declarations and type identities.
"""

from .ast_model import AstTypeModel
from .base import TypeModel
from .declarations import (
    ClassDeclaration,
    Declaration,
    ExternalDeclaration,
    FunctionDeclaration,
    ImportedName,
    ModuleReference,
    ParameterSpec,
    TypeAliasDeclaration,
    VariableDeclaration,
)
from .session import AnalysisSession, ModuleInfo, SessionCache, module_name_for_path

__all__ = [
    "AnalysisSession",
    "AstTypeModel",
    "ClassDeclaration",
    "Declaration",
    "ExternalDeclaration",
    "FunctionDeclaration",
    "ImportedName",
    "ModuleInfo",
    "ModuleReference",
    "ParameterSpec",
    "SessionCache",
    "TypeAliasDeclaration",
    "TypeModel",
    "VariableDeclaration",
    "module_name_for_path",
]
