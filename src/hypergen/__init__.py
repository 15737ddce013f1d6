"""hypergen - recipe-driven code generation CLI

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Templates are data, actions are plain Python
- Fail fast with helpful guidance

hypergen discovers generator kits, resolves recipes from command line
segments, and executes their steps (templates, shell commands, patches,
installs, sub-recipes) against a project.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
