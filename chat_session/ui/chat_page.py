"""NiceGUI chat page driven by a ChatSession over the streaming API."""

import uuid

from nicegui import ui

from chat_session.models.schemas import Message, MessageStatus, MessageUpdate, Role
from chat_session.session.facade import ChatSession
from chat_session.session.errors import SessionBusy
from chat_session.transport.http import HttpTransport

STATUS_LABELS = {
    MessageStatus.PENDING: "Thinking...",
    MessageStatus.STREAMING: "Typing...",
}

FAILURE_LABELS = {
    "cancelled": "Stopped",
    "timeout": "Timed out",
}


def status_text(message: Message) -> str:
    """Caption shown under a message bubble."""
    time = message.created_at.strftime("%I:%M %p")
    if message.status in STATUS_LABELS:
        return f"{time} · {STATUS_LABELS[message.status]}"
    if message.status is MessageStatus.FAILED:
        label = FAILURE_LABELS.get(message.reason.value if message.reason else "", "Failed")
        return f"{time} · {label}"
    return time


def new_session() -> ChatSession:
    return ChatSession(HttpTransport(session_id=str(uuid.uuid4())))


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    session = new_session()
    unsubscribe = None

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button
    stop_btn: ui.button

    def render_message(msg: Message) -> None:
        is_user = msg.role is Role.USER
        align = "justify-end" if is_user else "justify-start"

        with ui.row().classes(f"w-full {align}"):
            with ui.column().classes("max-w-[70%] gap-1"):
                ui.label(msg.content or "…").classes("whitespace-pre-wrap")
                ui.label(status_text(msg)).classes("text-xs")

    def refresh_messages(messages: tuple[Message, ...]) -> None:
        messages_container.clear()
        with messages_container:
            if not messages:
                ui.label("Start a conversation")
            for msg in messages:
                render_message(msg)

        busy = session.active_turn is not None
        send_btn.set_enabled(not busy)
        stop_btn.set_visibility(busy)

    def on_update(update: MessageUpdate) -> None:
        refresh_messages(update.messages)

    async def send_message() -> None:
        text = input_field.value or ""
        result = session.send_message(text)
        if result.ok:
            input_field.value = ""
            # The final store update lands before the controller returns to idle
            await result.turn.wait()
            refresh_messages(session.history())
            return
        if isinstance(result.error, SessionBusy):
            ui.notify("Wait for the current reply or stop it first", type="warning")

    def stop_reply() -> None:
        session.cancel_active()

    async def new_chat() -> None:
        nonlocal session, unsubscribe
        if unsubscribe is not None:
            unsubscribe()
        await session.close()
        session = new_session()
        unsubscribe = session.on_update(on_update)
        refresh_messages(session.history())

    # === UI Layout ===
    with ui.column().classes("w-full max-w-3xl mx-auto h-screen p-4"):
        with ui.row().classes("w-full items-center justify-between"):
            ui.label("Chat")
            ui.button(icon="add", on_click=new_chat).props("flat round")

        with ui.scroll_area().classes("flex-grow w-full"):
            messages_container = ui.column().classes("w-full gap-4")

        with ui.row().classes("w-full gap-3 items-end"):
            input_field = (
                ui.textarea(placeholder="Type a message...")
                .props("autogrow dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round")
            stop_btn = ui.button(icon="stop", on_click=stop_reply).props("round flat")

    unsubscribe = session.on_update(on_update)
    refresh_messages(session.history())


def main() -> None:
    ui.run(title="Chat", port=8080, reload=False)


if __name__ == "__main__":
    main()
