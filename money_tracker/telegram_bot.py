"""
Telegram chat adapter.

Routes incoming photos, documents, text messages and commands to the
transaction service and answers in the chat. The pipeline itself is
synchronous; each call runs on a worker thread so the event loop keeps
serving other chats.
"""

import asyncio
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Protocol

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import Application, ApplicationBuilder, ContextTypes, MessageHandler, filters

from .errors import AppError, ChatPlatformError, FileOperationError
from .services.transaction_service import ReconciliationResult, TransactionService, spreadsheet_link
from .utils.date_utils import ledger_now
from .utils.error_handling import handle_error

logger = logging.getLogger(__name__)

FAILURE_NOTICE = "Sorry, I couldn't process that. Please try again later."
NO_FILES = "No files received yet."
UNKNOWN_COMMAND = "Unknown command."


@dataclass(frozen=True)
class StoredFile:
    """A file received in chat and kept for /list, /view and /download"""
    file_id: str
    file_name: str
    user: str
    date: datetime

    def describe(self, position: int) -> str:
        stamp = f"{self.date:%b} {self.date.day} {self.date:%H:%M}"
        return f"{position}. {self.file_name} (from @{self.user}, {stamp})"


class StoredFileRegistry:
    """
    Append-only, thread-safe list of received files, addressed 1-based.
    """

    def __init__(self):
        self._files: List[StoredFile] = []
        self._lock = threading.Lock()

    def add(self, stored: StoredFile) -> int:
        """Register a file and return its 1-based position"""
        with self._lock:
            self._files.append(stored)
            return len(self._files)

    def get(self, index: int) -> Optional[StoredFile]:
        with self._lock:
            if 1 <= index <= len(self._files):
                return self._files[index - 1]
        return None

    def all(self) -> List[StoredFile]:
        with self._lock:
            return list(self._files)

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)


class ChatGateway(Protocol):
    """The chat operations the handler needs"""

    async def send_text(self, chat_id: int, text: str) -> None:
        ...

    async def send_photo(self, chat_id: int, path: str, caption: str) -> None:
        ...

    async def send_document(self, chat_id: int, path: str, caption: str) -> None:
        ...

    async def download_file(self, file_id: str, destination: str) -> None:
        ...


class TelegramGateway:
    """ChatGateway over a python-telegram-bot ``Bot``"""

    def __init__(self, bot):
        self.bot = bot

    async def send_text(self, chat_id: int, text: str) -> None:
        try:
            await self.bot.send_message(chat_id=chat_id, text=text)
        except TelegramError as e:
            raise ChatPlatformError("unable to send message", e).with_context("chat_id", chat_id)

    async def _send_file(self, kind: str, chat_id: int, path: str, caption: str) -> None:
        try:
            with open(path, "rb") as f:
                if kind == "photo":
                    await self.bot.send_photo(chat_id=chat_id, photo=f, caption=caption)
                else:
                    await self.bot.send_document(chat_id=chat_id, document=f, caption=caption)
        except OSError as e:
            raise FileOperationError(f"unable to open {kind} for sending", e).with_context("path", path)
        except TelegramError as e:
            raise ChatPlatformError(f"unable to send {kind}", e).with_context("chat_id", chat_id)

    async def send_photo(self, chat_id: int, path: str, caption: str) -> None:
        await self._send_file("photo", chat_id, path, caption)

    async def send_document(self, chat_id: int, path: str, caption: str) -> None:
        await self._send_file("document", chat_id, path, caption)

    async def download_file(self, file_id: str, destination: str) -> None:
        try:
            telegram_file = await self.bot.get_file(file_id)
            await telegram_file.download_to_drive(destination)
        except TelegramError as e:
            raise ChatPlatformError("unable to download file", e).with_context("file_id", file_id)
        except OSError as e:
            raise FileOperationError("unable to store downloaded file", e).with_context("path", destination)


def parse_index_arg(text: str, size: int) -> Optional[int]:
    """
    Parse the 1-based index argument of ``/view 2``; ``None`` when missing,
    not a number or out of range.
    """
    parts = text.split()
    if len(parts) < 2:
        return None
    try:
        index = int(parts[1])
    except ValueError:
        return None
    if index < 1 or index > size:
        return None
    return index


def command_name(text: str) -> str:
    """``"/view@my_bot 2"`` -> ``"view"``"""
    head = text.split()[0] if text.split() else ""
    return head.lstrip("/").split("@")[0].lower()


class ChatHandler:
    """
    Chat-facing entry point for the pipeline.

    The ``handle_*`` coroutines take plain values and can be driven without
    Telegram; the ``on_*`` callbacks adapt python-telegram-bot updates to them.
    Failures are logged and answered with a generic notice, never raised.
    """

    def __init__(self,
                 transaction_service: TransactionService,
                 gateway: ChatGateway,
                 registry: StoredFileRegistry,
                 spreadsheet_id: str,
                 download_dir: str = "downloads",
                 clock: Callable[[], datetime] = ledger_now):
        self.transaction_service = transaction_service
        self.gateway = gateway
        self.registry = registry
        self.ledger_link = spreadsheet_link(spreadsheet_id)
        self.download_dir = download_dir
        self.clock = clock

    def _local_path(self, file_name: str) -> str:
        return os.path.join(self.download_dir, file_name)

    async def _fail(self, chat_id: int, err: BaseException, operation: str) -> None:
        handle_error(err, operation)
        try:
            await self.gateway.send_text(chat_id, FAILURE_NOTICE)
        except AppError as notify_err:
            handle_error(notify_err, f"{operation}.notify")

    async def _reply_result(self, chat_id: int, result: ReconciliationResult) -> None:
        await self.gateway.send_text(chat_id, result.to_message(self.ledger_link))

    async def handle_command(self, chat_id: int, text: str) -> None:
        name = command_name(text)
        try:
            if name == "list":
                await self._list(chat_id)
            elif name in ("view", "download"):
                await self._send_stored(chat_id, name, text)
            else:
                await self.gateway.send_text(chat_id, UNKNOWN_COMMAND)
        except AppError as e:
            await self._fail(chat_id, e, f"command.{name}")

    async def _list(self, chat_id: int) -> None:
        files = self.registry.all()
        if not files:
            await self.gateway.send_text(chat_id, NO_FILES)
            return
        lines = [stored.describe(position) for position, stored in enumerate(files, start=1)]
        await self.gateway.send_text(chat_id, "\n".join(lines))

    async def _send_stored(self, chat_id: int, name: str, text: str) -> None:
        index = parse_index_arg(text, len(self.registry))
        stored = self.registry.get(index) if index is not None else None
        if stored is None:
            await self.gateway.send_text(chat_id, f"Usage: /{name} <number>")
            return

        path = self._local_path(stored.file_name)
        if not os.path.exists(path):
            await self.gateway.send_text(chat_id, f"File no longer available: {stored.file_name}")
            return

        if name == "view":
            await self.gateway.send_photo(chat_id, path, f"Viewing: {stored.file_name}")
        else:
            await self.gateway.send_document(chat_id, path, f"Download: {stored.file_name}")

    async def handle_document(self, chat_id: int, user: str, file_id: str, file_name: str) -> None:
        self.registry.add(StoredFile(file_id, file_name, user, self.clock()))
        try:
            await self.gateway.send_text(chat_id, f"Saved {file_name} ✅")
        except AppError as e:
            handle_error(e, "document")

    async def handle_photo(self, chat_id: int, user: str, file_id: str) -> None:
        file_name = f"{file_id}.jpg"
        path = self._local_path(file_name)
        try:
            os.makedirs(self.download_dir, exist_ok=True)
            await self.gateway.download_file(file_id, path)
            self.registry.add(StoredFile(file_id, file_name, user, self.clock()))
            result = await asyncio.to_thread(self.transaction_service.process_image, path, user)
            await self._reply_result(chat_id, result)
        except OSError as e:
            await self._fail(chat_id, FileOperationError("unable to prepare download directory", e), "photo")
        except AppError as e:
            await self._fail(chat_id, e, "photo")

    async def handle_text(self, chat_id: int, user: str, text: str) -> None:
        try:
            result = await asyncio.to_thread(self.transaction_service.process_text, text, user)
            await self._reply_result(chat_id, result)
        except AppError as e:
            await self._fail(chat_id, e, "text")

    @staticmethod
    def _username(update: Update) -> str:
        user = update.effective_user
        return (user.username or "") if user else ""

    async def on_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.handle_command(update.effective_chat.id, update.message.text or "")

    async def on_document(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        document = update.message.document
        await self.handle_document(
            update.effective_chat.id,
            self._username(update),
            document.file_id,
            document.file_name or document.file_id
        )

    async def on_photo(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        # the last size is the largest
        largest = update.message.photo[-1]
        await self.handle_photo(update.effective_chat.id, self._username(update), largest.file_id)

    async def on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self.handle_text(update.effective_chat.id, self._username(update), update.message.text or "")

    def register(self, application: Application) -> None:
        application.add_handler(MessageHandler(filters.COMMAND, self.on_command))
        application.add_handler(MessageHandler(filters.Document.ALL, self.on_document))
        application.add_handler(MessageHandler(filters.PHOTO, self.on_photo))
        application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self.on_text))


def build_application(token: str,
                      transaction_service: TransactionService,
                      registry: StoredFileRegistry,
                      spreadsheet_id: str,
                      download_dir: str = "downloads") -> Application:
    """Build a polling-ready Application with every handler registered"""
    application = ApplicationBuilder().token(token).build()
    handler = ChatHandler(
        transaction_service=transaction_service,
        gateway=TelegramGateway(application.bot),
        registry=registry,
        spreadsheet_id=spreadsheet_id,
        download_dir=download_dir
    )
    handler.register(application)
    logger.info("Telegram application built")
    return application
