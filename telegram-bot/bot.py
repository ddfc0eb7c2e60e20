import os
import logging
from typing import Dict
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import Application, CommandHandler, CallbackQueryHandler, ContextTypes
from dotenv import load_dotenv

from math_exam.client import BackendExamClient
from math_exam.controller import (
    UNKNOWN_ERROR_MESSAGE,
    ExamFormController,
    FormState,
    FormValidationError,
    parse_form,
)
from math_exam.display import EXAM_HEADING, format_question, toggle_label

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=logging.INFO
)
logger = logging.getLogger(__name__)

# Configuration
TELEGRAM_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000").rstrip("/")

logger.info(f"Backend URL: {BACKEND_URL}")

ALREADY_GENERATING_MESSAGE = "⏳ Already generating an exam, please wait..."

exam_client = BackendExamClient(BACKEND_URL)

# One form per chat
forms: Dict[int, ExamFormController] = {}


def get_form(chat_id: int) -> ExamFormController:
    if chat_id not in forms:
        forms[chat_id] = ExamFormController(exam_client)
    return forms[chat_id]


def describe_form(form: ExamFormController) -> str:
    return (
        f"📘 Topic: {form.topic}\n"
        f"🔢 Number of questions: {form.num_questions}"
    )


def answer_keyboard(form: ExamFormController, index: int) -> InlineKeyboardMarkup:
    label = toggle_label(form.is_revealed(index))
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(label, callback_data=f"toggle_{form.generation}_{index}")]
    ])


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Start command handler"""
    logger.info(f"Start command in chat {update.effective_chat.id}")
    form = get_form(update.effective_chat.id)
    await update.message.reply_text(
        "🧮 Math Exam Generator\n"
        "Create custom math quizzes with the power of AI.\n\n"
        f"{describe_form(form)}\n\n"
        "/topic <text> - Set the math topic\n"
        "/count <number> - Set the number of questions (1-20)\n"
        "/exam - Generate an exam\n"
        "/help - Show help message"
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Help command handler"""
    await update.message.reply_text(
        "📚 How to use the Math Exam Generator:\n\n"
        "1️⃣ Pick a topic: /topic Fractions\n"
        "2️⃣ Pick a size: /count 5\n"
        "3️⃣ Generate: /exam\n\n"
        "Or all at once: /exam Fractions 5\n\n"
        "Tap \"Show Answer\" under a question to reveal its answer."
    )


async def topic_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    form = get_form(update.effective_chat.id)
    form.topic = " ".join(context.args)
    await update.message.reply_text(describe_form(form))


async def count_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    form = get_form(update.effective_chat.id)
    form.num_questions = " ".join(context.args)
    await update.message.reply_text(describe_form(form))


async def exam_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Fill the form from the arguments, if any, and submit it"""
    chat_id = update.effective_chat.id
    form = get_form(chat_id)
    logger.info(f"Exam command in chat {chat_id} with args: {context.args}")

    if form.is_loading:
        await update.message.reply_text(ALREADY_GENERATING_MESSAGE)
        return

    if len(context.args) >= 2:
        form.topic = " ".join(context.args[:-1])
        form.num_questions = context.args[-1]
    elif len(context.args) == 1:
        form.topic = context.args[0]

    try:
        topic, count = parse_form(form.topic, form.num_questions)
    except FormValidationError:
        # records the failure on the form without calling the backend
        await form.submit()
        await update.message.reply_text(f"❌ Error: {form.error}")
        return

    loading_msg = await update.message.reply_text(
        f"🔄 Generating {count} questions about {topic}...\n"
        "Please wait..."
    )

    # another /exam may have started while the loading message was sent
    if form.is_loading:
        await loading_msg.edit_text(ALREADY_GENERATING_MESSAGE)
        return

    state = await form.submit()

    if state is FormState.LOADING:
        await loading_msg.edit_text(ALREADY_GENERATING_MESSAGE)
        return
    if state is not FormState.SUCCESS:
        await loading_msg.edit_text(f"❌ Error: {form.error or UNKNOWN_ERROR_MESSAGE}")
        return

    await loading_msg.edit_text(f"📝 {EXAM_HEADING}")
    for index, item in enumerate(form.exam):
        await update.message.reply_text(
            format_question(index, item),
            reply_markup=answer_keyboard(form, index)
        )


async def toggle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle Show/Hide Answer button clicks"""
    query = update.callback_query
    _, generation, index = query.data.split("_")
    generation, index = int(generation), int(index)

    form = forms.get(update.effective_chat.id)
    if form is None or form.exam is None or form.generation != generation:
        await query.answer("This exam has been replaced by a newer one.", show_alert=True)
        return

    await query.answer()
    shown = form.toggle_answer(index)
    await query.edit_message_text(
        format_question(index, form.exam[index], shown),
        reply_markup=answer_keyboard(form, index)
    )


def main():
    """Start the bot"""
    if not TELEGRAM_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN not found in environment variables!")
        return

    application = Application.builder().token(TELEGRAM_TOKEN).concurrent_updates(True).build()

    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("topic", topic_command))
    application.add_handler(CommandHandler("count", count_command))
    application.add_handler(CommandHandler("exam", exam_command))
    application.add_handler(CallbackQueryHandler(toggle_callback, pattern="^toggle_"))

    logger.info("Bot started successfully!")
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
