from sqlgate.rag.prompt_builder import build_context, build_system_prompt
from sqlgate.rag.schemas import ConversationTurn


def test_system_prompt_lists_tables_and_contract():
    prompt = build_system_prompt(["Orders", "Users"])
    assert "Available tables: Orders, Users" in prompt
    for field in ("needsQuery", "query", "explanation", "response"):
        assert f"- {field}:" in prompt
    assert "SELECT" in prompt


def test_system_prompt_without_tables():
    assert "(no tables available)" in build_system_prompt([])


def test_context_order():
    history = [
        ConversationTurn(role="user", content="hi"),
        ConversationTurn(role="assistant", content="hello"),
        ConversationTurn(role="user", content="how many users?"),
        ConversationTurn(role="assistant", content="2"),
    ]
    payload = build_context(["Users"], history, "and orders?")

    assert payload[0]["role"] == "system"
    assert payload[1:-1] == [{"role": t.role, "content": t.content} for t in history]
    assert payload[-1] == {"role": "user", "content": "and orders?"}


def test_history_is_not_modified():
    history = (ConversationTurn(role="system", content="be brief"),)
    payload = build_context([], history, "q")
    assert len(payload) == 3
    assert payload[1] == {"role": "system", "content": "be brief"}
    assert history[0].content == "be brief"
