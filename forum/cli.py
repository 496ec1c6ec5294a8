from __future__ import annotations
from typing import Optional
import logging
import os
import typer
from rich.console import Console
from rich.table import Table
from rich.markdown import Markdown

from .auth import AuthContext
from .db import init_db
from .errors import ForumError
from .services import (
    create_user, create_category, get_user,
    list_topics, create_topic, get_topic, update_topic, delete_topic,
    archive_topic, unarchive_topic, get_topic_chats, get_topic_tasks,
    post_message, add_task, complete_task,
)

app = typer.Typer(help="Forum: topic management CLI")
console = Console()

@app.callback()
def _boot():
    logging.basicConfig(level=os.getenv("FORUM_LOG_LEVEL", "WARNING").upper())
    init_db()

def _caller(user_id: Optional[int]) -> AuthContext:
    if user_id is None:
        return AuthContext.anonymous()
    user = get_user(user_id)
    if user is None:
        console.print(f"[red]Unknown user[/]: {user_id}")
        raise typer.Exit(1)
    return AuthContext.for_user(user)

def _fail(e: ForumError):
    console.print(f"[red]{type(e).__name__}[/]: {e}")
    raise typer.Exit(1)

AS_USER = typer.Option(None, "--as", help="acting user id")

@app.command("user-add")
def user_add(name: str, moderator: bool = typer.Option(False, "--moderator")):
    u = create_user(name, is_moderator=moderator)
    console.print(f"[green]Created user[/] #{u.id}: {u.name}")

@app.command("category-add")
def category_add(name: str):
    c = create_category(name)
    console.print(f"[green]Created category[/] #{c.id}: {c.name}")

@app.command("list")
def _list():
    table = Table(title="Topics")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Tags", style="magenta")
    table.add_column("By")
    table.add_column("Archived")
    for t in list_topics():
        table.add_row(
            str(t.id), t.name, ", ".join(tag.name for tag in t.tags),
            t.created_by.name if t.created_by else "",
            "✓" if (t.is_archived or t.is_self_archived) else "",
        )
    console.print(table)

@app.command()
def show(topic_id: int):
    try:
        d = get_topic(topic_id)
    except ForumError as e:
        _fail(e)
    t = d.topic
    console.rule(f"#{t.id} {t.name}")
    if t.tags:
        console.print(f"[dim]tags:[/] {', '.join(tag.name for tag in t.tags)}")
    console.print(Markdown(t.description or "_<empty>_"))
    for a in d.announcements:
        console.print(f"[yellow]announcement:[/] {a.description}")
    for m in d.pinned_messages:
        console.print(f"[cyan]pinned:[/] {m.description}")

@app.command()
def add(
    name: str = typer.Option(..., "--name", "-n"),
    category: int = typer.Option(..., "--category", "-c"),
    description: str = typer.Option("", "--description", "-d"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g", help="comma separated"),
    as_user: Optional[int] = AS_USER,
):
    try:
        t = create_topic(_caller(as_user), name, category, description, tags)
    except ForumError as e:
        _fail(e)
    console.print(f"[green]Created[/] #{t.id}: {t.name}")

@app.command()
def edit(
    topic_id: int,
    name: str = typer.Option(..., "--name", "-n"),
    description: str = typer.Option("", "--description", "-d"),
    tags: Optional[str] = typer.Option(None, "--tags", "-g"),
    as_user: Optional[int] = AS_USER,
):
    try:
        t = update_topic(_caller(as_user), topic_id, name=name, description=description, tag_string=tags)
    except ForumError as e:
        _fail(e)
    console.print(f"[green]Updated[/] #{t.id}: {t.name}")

@app.command()
def delete(topic_id: int, as_user: Optional[int] = AS_USER):
    try:
        r = delete_topic(_caller(as_user), topic_id)
    except ForumError as e:
        _fail(e)
    console.print(f"[yellow]{r.result}[/]")

@app.command()
def archive(topic_id: int, as_user: Optional[int] = AS_USER):
    try:
        r = archive_topic(_caller(as_user), topic_id)
    except ForumError as e:
        _fail(e)
    console.print(f"[yellow]{r.result}[/]")

@app.command()
def unarchive(topic_id: int, as_user: Optional[int] = AS_USER):
    try:
        r = unarchive_topic(_caller(as_user), topic_id)
    except ForumError as e:
        _fail(e)
    console.print(f"[green]{r.result}[/]")

@app.command()
def chats(topic_id: int):
    try:
        items = get_topic_chats(topic_id)
    except ForumError as e:
        _fail(e)
    for c in items:
        who = c.user.name if c.user else "?"
        console.print(f"[cyan]{who}[/]: {c.description}")

@app.command()
def tasks(topic_id: int):
    try:
        items = get_topic_tasks(topic_id)
    except ForumError as e:
        _fail(e)
    table = Table(title=f"Open tasks of #{topic_id}")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Description")
    table.add_column("Topic", justify="right")
    for t in items:
        table.add_row(str(t.id), t.description, str(t.parent_topic_id or ""))
    console.print(table)

@app.command()
def say(
    topic_id: int,
    text: str,
    pin: bool = typer.Option(False, "--pin"),
    as_user: Optional[int] = AS_USER,
):
    try:
        m = post_message(_caller(as_user), topic_id, text, pinned=pin)
    except ForumError as e:
        _fail(e)
    console.print(f"[green]Posted[/] message #{m.id}")

@app.command("task-add")
def task_add(
    topic_id: int,
    description: str = typer.Option("", "--description", "-d"),
    message: Optional[int] = typer.Option(None, "--message", "-m", help="attach to message id"),
    as_user: Optional[int] = AS_USER,
):
    try:
        t = add_task(_caller(as_user), topic_id, description, attached_message_id=message)
    except ForumError as e:
        _fail(e)
    console.print(f"[green]Added[/] task #{t.id}")

@app.command("task-done")
def task_done(task_id: int, as_user: Optional[int] = AS_USER):
    try:
        complete_task(_caller(as_user), task_id)
    except ForumError as e:
        _fail(e)
    console.print(f"[green]Completed[/] task #{task_id}")

def main():
    app()

if __name__ == "__main__":
    main()
