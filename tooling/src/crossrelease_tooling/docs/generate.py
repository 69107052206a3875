"""Generate rustdoc for one target and add a redirect index to the crate's entry page."""

from __future__ import annotations

import shutil
from pathlib import Path

from crossrelease_tooling.build.publish import build_env, target_args
from crossrelease_tooling.errors import DocumentationError
from crossrelease_tooling.helpers import combined_output, crate_doc_dir_name, run_tool
from crossrelease_tooling.pipeline.context import PipelineContext

REDIRECT_TEMPLATE = '<meta http-equiv="refresh" content="0; url={entry}">\n'


def redirect_page(package: str) -> str:
    """index.html body pointing at the crate's top-level docs (esp-idf-hal -> esp_idf_hal)."""
    return REDIRECT_TEMPLATE.format(entry=crate_doc_dir_name(package))


def generate_docs(ctx: PipelineContext) -> Path:
    """cargo doc for ctx.target; returns <workdir>/docs with index.html redirect added."""
    triple = ctx.target.triple
    cmd = ["cargo", "doc"]
    if ctx.config.doc_features:
        cmd += ["--features", ",".join(ctx.config.doc_features)]
    cmd += target_args(triple)

    print(f"📚 Building documentation for {triple}...")
    try:
        r = run_tool(cmd, cwd=ctx.config.project_root, env=build_env(ctx))
    except FileNotFoundError as e:
        msg = "cargo not found in PATH"
        raise DocumentationError(msg, cmd=cmd) from e
    if r.returncode != 0:
        out = combined_output(r)
        msg = f"cargo doc failed for {triple}:\n{out}"
        raise DocumentationError(msg, cmd=cmd, returncode=r.returncode, output=out)

    doc_root = ctx.cargo_target_dir / triple / "doc"
    if not doc_root.is_dir():
        msg = f"cargo doc produced no output at {doc_root}"
        raise DocumentationError(msg, cmd=cmd)
    (doc_root / "index.html").write_text(redirect_page(ctx.config.package))

    dest = ctx.workdir / "docs"
    if dest.exists():
        shutil.rmtree(dest)
    shutil.move(str(doc_root), str(dest))
    ctx.docs_dir = dest
    return dest
