"""Documentation: generate rustdoc per target; deploy the primary target's docs from the release branch."""

from .deploy import deploy_docs, should_deploy_docs
from .generate import generate_docs, redirect_page

__all__ = [
    "deploy_docs",
    "generate_docs",
    "redirect_page",
    "should_deploy_docs",
]
