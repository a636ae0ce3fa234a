"""CLI for running the site and managing blog posts locally."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adjacent.blog.formatter import BlockKind, format_content, render_html
from adjacent.blog.services import PostService
from adjacent.blog.slugs import slugify
from adjacent.config import SiteConfig, load_config
from adjacent.content.store import create_store
from adjacent.errors import AdjacentError
from adjacent.media.uploads import ImageUploader, UploadedFile, create_image_storage

app = typer.Typer(
    name="adjacent",
    help="Run the Adjacent Property Management blog and manage its posts.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from adjacent import __version__

        console.print(f"adjacent {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to a .adjacent.toml config file.",
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Adjacent blog - content pipeline and admin API."""
    ctx.obj = load_config(config_path)


def _config(ctx: typer.Context) -> SiteConfig:
    return ctx.obj if isinstance(ctx.obj, SiteConfig) else load_config()


def _service(ctx: typer.Context) -> PostService:
    return PostService(create_store(_config(ctx)))


def _fail(exc: AdjacentError) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc.message}")
    raise typer.Exit(1)


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address.")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port.")] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Enable Flask debug mode.")] = False,
) -> None:
    """Run the web server (admin API + public blog API)."""
    from adjacent.web.app import create_app

    config = _config(ctx)
    flask_app = create_app(config)
    flask_app.run(
        host=host or config.server.host,
        port=port or config.server.port,
        debug=debug or config.server.debug,
    )


@app.command()
def slug(title: Annotated[str, typer.Argument(help="Post title.")]) -> None:
    """Print the URL slug for a title."""
    console.print(slugify(title), markup=False, highlight=False)


@app.command()
def render(
    file: Annotated[
        Path,
        typer.Argument(help="Post content file.", exists=True, dir_okay=False),
    ],
    html: Annotated[bool, typer.Option("--html", help="Print rendered HTML.")] = False,
) -> None:
    """Show how post content is split into headings and paragraphs."""
    blocks = format_content(file.read_text(encoding="utf-8"))
    if html:
        console.print(render_html(blocks), markup=False, highlight=False)
        return
    for block in blocks:
        if block.kind == BlockKind.HEADING:
            console.print(f"[bold green]## {escape(block.text)}[/bold green]")
            continue
        line = "".join(
            f"[bold]{escape(s.text)}[/bold]" if s.bold else escape(s.text) for s in block.spans
        )
        console.print(line)
        console.print()


@app.command(name="posts")
def posts_cmd(ctx: typer.Context) -> None:
    """List all posts, drafts included, newest first."""
    service = _service(ctx)
    try:
        posts = service.list_all()
    except AdjacentError as exc:
        _fail(exc)

    table = Table(title="Blog posts")
    table.add_column("Status", no_wrap=True)
    table.add_column("Title")
    table.add_column("Slug", no_wrap=True)
    table.add_column("Created", no_wrap=True)
    table.add_column("ID", style="dim", overflow="fold")
    for post in posts:
        status = "[green]published[/green]" if post.published else "[yellow]draft[/yellow]"
        table.add_row(
            status,
            escape(post.title),
            post.slug,
            post.created_at.strftime("%Y-%m-%d"),
            post.id,
        )
    console.print(table)

    published = sum(1 for p in posts if p.published)
    drafts = len(posts) - published
    console.print(
        f"{published} published, {drafts} draft{'' if drafts == 1 else 's'}"
    )


def _set_published(ctx: typer.Context, slug_value: str, published: bool) -> None:
    service = _service(ctx)
    try:
        post = service.store.get_by_slug(slug_value)
        if post is None:
            console.print(f"[red]Error:[/red] No post with slug '{slug_value}'")
            raise typer.Exit(1)
        updated = service.set_published(post.id, published)
    except AdjacentError as exc:
        _fail(exc)
    state = "published" if updated.published else "draft"
    console.print(f"[green]{updated.slug}[/green] is now {state}")


@app.command()
def publish(
    ctx: typer.Context,
    slug_value: Annotated[str, typer.Argument(metavar="SLUG", help="Post slug.")],
) -> None:
    """Publish a post."""
    _set_published(ctx, slug_value, True)


@app.command()
def unpublish(
    ctx: typer.Context,
    slug_value: Annotated[str, typer.Argument(metavar="SLUG", help="Post slug.")],
) -> None:
    """Return a post to draft."""
    _set_published(ctx, slug_value, False)


@app.command()
def delete(
    ctx: typer.Context,
    post_id: Annotated[str, typer.Argument(help="Post ID.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation.")] = False,
) -> None:
    """Delete a post permanently."""
    if not yes:
        typer.confirm("Delete this post? This cannot be undone.", abort=True)
    try:
        _service(ctx).delete(post_id)
    except AdjacentError as exc:
        _fail(exc)
    console.print(f"Deleted {post_id}")


@app.command()
def upload(
    ctx: typer.Context,
    file: Annotated[
        Path,
        typer.Argument(help="Image file to upload.", exists=True, dir_okay=False),
    ],
) -> None:
    """Upload a cover image and print its public URL."""
    config = _config(ctx)
    content_type = mimetypes.guess_type(file.name)[0] or "application/octet-stream"
    uploader = ImageUploader(
        create_image_storage(config),
        prefix=config.uploads.prefix,
        cache_control=config.uploads.cache_control,
    )
    try:
        url = uploader.upload(
            UploadedFile(filename=file.name, content_type=content_type, data=file.read_bytes())
        )
    except AdjacentError as exc:
        _fail(exc)
    console.print(url, markup=False, highlight=False)
