"""Tests for QueryFormulator strategies and their fallbacks."""

import pytest
from casual_llm import AssistantMessage, UserMessage

from persona_journal.retrieval.query import QueryFormulator


def history():
    return [
        UserMessage(content="Where did you hide the map?"),
        AssistantMessage(content="Somewhere only I know."),
        UserMessage(content="abc"),
        AssistantMessage(content="ddd"),
    ]


@pytest.mark.asyncio
async def test_plain_embeds_current_message(make_llm, gateway, embedder, settings, vectorize):
    llm = make_llm("unused")
    formulator = QueryFormulator(llm, gateway)

    query = await formulator.formulate("the tavern", "Aria", history(), settings)

    assert query.method == "plain"
    assert query.text == "the tavern"
    assert query.vector == vectorize("the tavern")
    assert embedder.calls == ["the tavern"]
    llm.chat.assert_not_called()


@pytest.mark.asyncio
async def test_llm_summary(make_llm, gateway, embedder, settings):
    settings.query_method = "llm-summary"
    llm = make_llm("  They are talking about a hidden map.  ")
    formulator = QueryFormulator(llm, gateway)

    query = await formulator.formulate("where is it?", "Aria", history(), settings)

    assert query.method == "llm-summary"
    assert query.text == "They are talking about a hidden map."
    assert embedder.calls == ["They are talking about a hidden map."]
    kwargs = llm.chat.call_args.kwargs
    assert kwargs["response_format"] == "text"
    assert kwargs["temperature"] == settings.summary_temperature
    prompt = kwargs["messages"][0].content
    assert '"where is it?"' in prompt
    assert "user: abc" in prompt
    assert "assistant: ddd" in prompt


@pytest.mark.asyncio
async def test_llm_summary_needs_two_turns(make_llm, gateway, embedder, settings):
    settings.query_method = "llm-summary"
    llm = make_llm("summary")

    query = await QueryFormulator(llm, gateway).formulate(
        "hello", "Aria", [UserMessage(content="hi")], settings
    )

    assert query.method == "plain"
    assert embedder.calls == ["hello"]
    llm.chat.assert_not_called()


@pytest.mark.asyncio
async def test_llm_summary_failure_falls_back_to_plain(make_llm, gateway, embedder, settings):
    settings.query_method = "llm-summary"
    llm = make_llm()
    llm.chat.side_effect = RuntimeError("model offline")

    query = await QueryFormulator(llm, gateway).formulate("hello", "Aria", history(), settings)

    assert query.method == "plain"
    assert embedder.calls == ["hello"]


@pytest.mark.asyncio
async def test_hyde(make_llm, gateway, embedder, settings):
    settings.query_method = "hyde"
    llm = make_llm("Aria recalled hiding the map under the floorboards.")

    query = await QueryFormulator(llm, gateway).formulate("the map?", "Aria", [], settings)

    assert query.method == "hyde"
    assert embedder.calls == ["Aria recalled hiding the map under the floorboards."]
    kwargs = llm.chat.call_args.kwargs
    assert kwargs["temperature"] == settings.hyde_temperature
    assert "character Aria" in kwargs["messages"][0].content


@pytest.mark.asyncio
async def test_hyde_flag_applies_after_summary(make_llm, gateway, settings):
    settings.query_method = "llm-summary"
    settings.hyde_enabled = True
    llm = make_llm("generated")

    query = await QueryFormulator(llm, gateway).formulate("the map?", "Aria", history(), settings)

    assert query.method == "hyde"
    assert llm.chat.await_count == 2


@pytest.mark.asyncio
async def test_empty_hyde_keeps_message(make_llm, gateway, embedder, settings):
    settings.query_method = "hyde"

    query = await QueryFormulator(make_llm("   "), gateway).formulate("the map?", "Aria", [], settings)

    assert query.method == "plain"
    assert embedder.calls == ["the map?"]


@pytest.mark.asyncio
async def test_average_of_last_turns(make_llm, gateway, settings, vectorize):
    settings.query_method = "average"

    query = await QueryFormulator(make_llm(), gateway).formulate("next", "Aria", history(), settings)

    expected = [(u + a) / 2 for u, a in zip(vectorize("abc"), vectorize("ddd"))]
    assert query.method == "average"
    assert query.vector == pytest.approx(expected)


@pytest.mark.asyncio
async def test_average_needs_history(make_llm, gateway, embedder, settings):
    settings.query_method = "average"

    query = await QueryFormulator(make_llm(), gateway).formulate(
        "next", "Aria", [UserMessage(content="abc")], settings
    )

    assert query.method == "plain"
    assert embedder.calls == ["next"]


@pytest.mark.asyncio
async def test_average_without_assistant_turn_falls_back(make_llm, gateway, embedder, settings):
    settings.query_method = "average"
    only_user = [UserMessage(content="abc"), UserMessage(content="def")]

    query = await QueryFormulator(make_llm(), gateway).formulate("next", "Aria", only_user, settings)

    assert query.method == "plain"
    assert embedder.calls == ["next"]


@pytest.mark.asyncio
async def test_embedding_failure_gives_empty_vector(make_llm, failing_gateway, settings):
    query = await QueryFormulator(make_llm(), failing_gateway).formulate("hello", "Aria", [], settings)

    assert query.vector == []
