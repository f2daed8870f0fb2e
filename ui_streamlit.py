import os
import time
import html
import requests
import streamlit as st

# === Настройки ===
DEFAULT_API_URL = os.getenv("API_URL", "http://localhost:3000/api/ask")
APP_TITLE = "📘 Edu Ask"
APP_DESC = "Укажи класс, тему и тип материала, и получи конспект, задачи, разбор решения или тест от модели."

CONTENT_TYPES = [
    "Lesson summary",
    "Practice problems",
    "Step-by-step",
    "Concept explanation",
    "Quiz questions",
]

# === Внешний вид ===
st.set_page_config(page_title=APP_TITLE, page_icon="📘", layout="wide")
st.markdown(
    """
<style>
:root {
  --pri: #4F46E5;
  --radius: 12px;
}

.block-container { padding-top: 2rem; padding-bottom: 1rem; }
.small { font-size: 0.85rem; opacity: 0.85; }

@media (prefers-color-scheme: light) {
  .answer { background: #f8fafc; border: 1px solid #e5e7eb; color: #0f172a; border-radius: var(--radius); padding: 14px; }
  .divider { border-top: 1px solid #e5e7eb; margin: 8px 0 16px 0; }
}

@media (prefers-color-scheme: dark) {
  .answer { background: #0b1220; border: 1px solid #1f2937; color: #e5e7eb; border-radius: var(--radius); padding: 14px; }
  .divider { border-top: 1px solid #1f2937; margin: 8px 0 16px 0; }
}
</style>
""",
    unsafe_allow_html=True,
)

# === Сайдбар ===
with st.sidebar:
    st.markdown(f"### {APP_TITLE}")
    st.write(APP_DESC)
    api_url = st.text_input("API URL", value=DEFAULT_API_URL)
    st.markdown("---")
    st.markdown("**Подсказки:**")
    st.markdown("- Убедись, что сервер запущен: `eduask` или `uvicorn eduask.main:app --port 3000`")
    st.markdown("- Нужен ключ `OPENAI_API_KEY` в окружении или `.env`.")
    st.markdown("---")
    clear_btn = st.button("Очистить историю")

# === Состояние ===
if "history" not in st.session_state:
    # элементы: (request_dict, answer_html, generation_ms, usage, ok)
    st.session_state.history = []

if clear_btn:
    st.session_state.history.clear()

st.title(APP_TITLE)

# === Форма ввода ===
col_grade, col_topic, col_type = st.columns([1, 2, 2])
with col_grade:
    grade = st.text_input("Класс:", placeholder="5")
with col_topic:
    topic = st.text_input("Тема:", placeholder="Fractions")
with col_type:
    content_type = st.selectbox("Тип материала:", CONTENT_TYPES)
question = st.text_area("Вопрос:", placeholder="Например: How do I add 1/3 and 1/4?")
ask_clicked = st.button("Спросить", type="primary")


def call_api(payload: dict, url: str) -> dict:
    """POST /api/ask. Возвращает dict с result/generationTimeMs/usage либо ошибку."""
    try:
        t0 = time.time()
        r = requests.post(url, json=payload, timeout=120)
        latency = time.time() - t0
        data = r.json()
        if r.status_code == 200:
            data["_ok"] = True
            data["_latency"] = latency
            return data
        return {"_ok": False, "_latency": latency, "error": f"HTTP {r.status_code}: {data.get('error', r.text)}"}
    except (requests.RequestException, ValueError) as e:
        return {"_ok": False, "_latency": 0.0, "error": str(e)}


def as_html_with_br(text: str) -> str:
    """Экранируем HTML и сохраняем переводы строк как <br/>."""
    return html.escape(text).replace("\n", "<br/>")


# === Обработка запроса ===
if ask_clicked:
    payload = {
        "grade": grade.strip(),
        "topic": topic.strip(),
        "contentType": content_type,
        "question": question.strip(),
    }
    resp = call_api(payload, api_url)
    if resp.get("_ok"):
        st.session_state.history.append((
            payload,
            as_html_with_br(resp.get("result", "")),
            resp.get("generationTimeMs", 0),
            resp.get("usage"),
            True,
        ))
    else:
        st.session_state.history.append((payload, resp.get("error", "unknown"), 0, None, False))

# === Рендер истории (последние сверху) ===
for req, answer, gen_ms, usage, ok in reversed(st.session_state.history):
    with st.container():
        st.markdown(
            f"**❓ {html.escape(req['contentType'])}** • класс {html.escape(req['grade'])} • "
            f"{html.escape(req['topic'])}: {html.escape(req['question'])}"
        )
        if ok:
            st.markdown(f"""<div class="answer">{answer}</div>""", unsafe_allow_html=True)
            tokens = f" • токенов: {usage.get('total_tokens')}" if usage else ""
            st.caption(f"⏱ Генерация: {gen_ms} мс{tokens}")
        else:
            st.error(f"Ошибка: {answer}")
        st.markdown("<div class='divider'></div>", unsafe_allow_html=True)
