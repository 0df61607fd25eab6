"""Tests for the content generation client and output validation."""

import asyncio
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx
import pytest
from server.config import Settings
from server.services.content.generation import (
    build_chat_payload,
    build_payload,
    generate_chat_reply,
    generate_flashcards,
    generate_quiz_feedback,
    generate_quizzes,
    generate_summary,
)
from server.services.content.provider import (
    FakeProvider,
    GenerationError,
    HttpContentProvider,
    get_provider,
    reset_provider,
)
from server.services.content.validate import clean_flashcards, clean_quizzes, validate_question, validate_summary
from study.enums import GenerationAmount, QuizType
from study.errors import InvalidInput
from study.models import QuizQuestion, Subject, SubjectFile


def _subject(material='Photosynthesis turns light into chemical energy.', files=None):
    return Subject(id='s1', name='Biology', material=material, files=files or [])


def _mock_provider(handler, **kwargs):
    return HttpContentProvider(
        base_url='http://content.test/',
        transport=httpx.MockTransport(handler),
        backoff_s=0,
        **kwargs,
    )


def test_disabled_returns_no_provider():
    reset_provider()
    assert get_provider(Settings(content_enabled=False)) is None


def test_enabled_provider_is_cached():
    reset_provider()
    try:
        settings = Settings(content_enabled=True, content_base_url='http://content.test')
        provider = get_provider(settings)
        assert isinstance(provider, HttpContentProvider)
        assert get_provider(settings) is provider
    finally:
        reset_provider()


def test_payload_limits_follow_amount():
    payload = build_payload(_subject(), amount=GenerationAmount.FEW, language='fr', focus='chlorophyll')
    assert payload['limits'] == {'flashcards': 5, 'quizzes': 3}
    assert payload['language'] == 'fr'
    assert payload['focus'] == 'chlorophyll'
    assert build_payload(_subject(), amount=GenerationAmount.A_LOT)['limits'] == {'flashcards': 20, 'quizzes': 8}


def test_payload_truncates_material():
    payload = build_payload(_subject(material='x' * 50), max_input_chars=10)
    assert payload['material'] == 'x' * 10


def test_payload_requires_material_or_files():
    with pytest.raises(InvalidInput):
        build_payload(_subject(material='  '))
    pdf = SubjectFile(id='f1', name='a.pdf', mime_type='application/pdf', data='JVBERg==')
    payload = build_payload(_subject(material='', files=[pdf]))
    assert payload['files'] == [{'mime_type': 'application/pdf', 'data': 'JVBERg=='}]


def test_payload_rejects_unknown_language():
    with pytest.raises(InvalidInput):
        build_payload(_subject(), language='de')


def test_http_provider_posts_task():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen['url'] = str(request.url)
        seen['auth'] = request.headers.get('authorization')
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'summary': '# Guide'})

    provider = _mock_provider(handler, api_key='k123')
    payload = build_payload(_subject())
    assert asyncio.run(generate_summary(provider, payload)) == '# Guide'
    assert seen['url'] == 'http://content.test/generate/summary'
    assert seen['auth'] == 'Bearer k123'
    assert seen['body']['subject'] == 'Biology'


def test_http_provider_retries_rate_limit():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(429)
        return httpx.Response(200, json={'summary': 'ok'})

    result = asyncio.run(_mock_provider(handler).generate('summary', {}))
    assert result == {'summary': 'ok'}
    assert len(calls) == 3


def test_http_provider_error_kinds():
    def server_error(request):
        return httpx.Response(500, text='boom')

    def not_json(request):
        return httpx.Response(200, text='<html>')

    def timeout(request):
        raise httpx.ReadTimeout('slow', request=request)

    def refused(request):
        raise httpx.ConnectError('refused', request=request)

    for handler, kind in [
        (server_error, 'provider_error'),
        (not_json, 'invalid_json'),
        (timeout, 'timeout'),
        (refused, 'unavailable'),
    ]:
        with pytest.raises(GenerationError) as exc:
            asyncio.run(_mock_provider(handler).generate('flashcards', {}))
        assert exc.value.kind == kind


def test_summary_validation():
    assert validate_summary({'summary': 'text'}) == (True, '')
    assert not validate_summary({'summary': '  '})[0]
    assert not validate_summary(['summary'])[0]


def test_clean_flashcards_drops_invalid_and_limits():
    out = {'flashcards': [
        {'term': 'ATP', 'definition': 'Energy currency'},
        {'term': '', 'definition': 'no term'},
        {'term': 'DNA'},
        'junk',
        {'term': ' RNA ', 'definition': ' Messenger '},
        {'term': 'Extra', 'definition': 'Over the limit'},
    ]}
    assert clean_flashcards(out, 2) == [('ATP', 'Energy currency'), ('RNA', 'Messenger')]
    assert clean_flashcards({'cards': []}, 5) == []


def test_question_validation_per_type():
    mc = {'question': 'Pick primes', 'options': ['2', '3', '4'], 'correctAnswer': ['2', '3'], 'explanation': ''}
    assert validate_question(QuizType.MULTIPLE_CHOICE, mc)[0]
    bad_mc = dict(mc, correctAnswer=['5'])
    assert not validate_question(QuizType.MULTIPLE_CHOICE, bad_mc)[0]

    tf = {'question': 'Water boils at 100C', 'options': ['True', 'False'], 'correctAnswer': ['True']}
    assert validate_question(QuizType.TRUE_FALSE, tf)[0]
    assert not validate_question(QuizType.TRUE_FALSE, dict(tf, options=['Yes', 'No']))[0]
    assert not validate_question(QuizType.TRUE_FALSE, dict(tf, correctAnswer=['True', 'False']))[0]

    fib = {'question': 'The ___ is the powerhouse', 'options': [], 'correctAnswer': ['mitochondria']}
    assert validate_question(QuizType.FILL_IN_THE_BLANK, fib)[0]
    assert not validate_question(QuizType.FILL_IN_THE_BLANK, dict(fib, correctAnswer=[]))[0]


def test_clean_quizzes():
    out = {
        'Multiple Choice': [{'question': 'Q', 'options': ['a', 'b'], 'correctAnswer': ['a']}] * 4,
        'True/False': [{'question': 'T', 'options': ['Yes'], 'correctAnswer': ['Yes']}],
        'Fill-in-the-Blank': [{'question': 'The ___', 'options': ['x'], 'correctAnswer': ['cat']}],
    }
    quizzes = clean_quizzes(out, 3)
    assert set(quizzes) == {QuizType.MULTIPLE_CHOICE, QuizType.FILL_IN_THE_BLANK}
    assert len(quizzes[QuizType.MULTIPLE_CHOICE]) == 3
    assert quizzes[QuizType.MULTIPLE_CHOICE][0].correct_answer == ['a']
    assert quizzes[QuizType.FILL_IN_THE_BLANK][0].options == []


def test_generation_rejects_empty_output():
    payload = build_payload(_subject())
    provider = FakeProvider(canned={'flashcards': {'flashcards': []}, 'quizzes': {}, 'summary': {}})
    for fn in (generate_flashcards, generate_quizzes, generate_summary):
        with pytest.raises(GenerationError) as exc:
            asyncio.run(fn(provider, payload))
        assert exc.value.kind == 'invalid_schema'


def test_fake_provider_records_calls():
    provider = FakeProvider(canned={'flashcards': {'flashcards': [{'term': 'a', 'definition': 'b'}]}})
    payload = build_payload(_subject())
    assert asyncio.run(generate_flashcards(provider, payload)) == [('a', 'b')]
    assert provider.calls[0][0] == 'flashcards'


def test_chat_payload_keeps_history_order():
    history = [
        {'role': 'user', 'content': 'What is chlorophyll?'},
        {'role': 'model', 'content': 'A green pigment.'},
        {'role': 'user', 'content': ' Why green? '},
    ]
    payload = build_chat_payload(_subject(material=''), history, language='fr')
    assert [m['role'] for m in payload['history']] == ['user', 'model', 'user']
    assert payload['history'][-1]['content'] == 'Why green?'
    assert payload['material'] == ''
    assert payload['language'] == 'fr'


def test_chat_payload_rejects_bad_history():
    for history in (
        [],
        [{'role': 'model', 'content': 'Hello'}],
        [{'role': 'system', 'content': 'Hi'}],
        [{'role': 'user', 'content': '   '}],
    ):
        with pytest.raises(InvalidInput):
            build_chat_payload(_subject(), history)


def test_chat_reply_over_http():
    seen = {}

    def handler(request):
        seen['url'] = str(request.url)
        seen['body'] = json.loads(request.content)
        return httpx.Response(200, json={'reply': ' Light is absorbed by chlorophyll. '})

    payload = build_chat_payload(_subject(), [{'role': 'user', 'content': 'How does it start?'}])
    reply = asyncio.run(generate_chat_reply(_mock_provider(handler), payload))
    assert reply == 'Light is absorbed by chlorophyll.'
    assert seen['url'] == 'http://content.test/generate/chat'
    assert seen['body']['history'] == [{'role': 'user', 'content': 'How does it start?'}]


def test_chat_reply_rejects_empty_output():
    payload = build_chat_payload(_subject(), [{'role': 'user', 'content': 'Hi'}])
    with pytest.raises(GenerationError) as exc:
        asyncio.run(generate_chat_reply(FakeProvider(canned={'chat': {'reply': ''}}), payload))
    assert exc.value.kind == 'invalid_schema'


def test_quiz_feedback_sends_missed_questions():
    provider = FakeProvider(canned={'quiz_feedback': {'feedback': '- Review the light reactions'}})
    missed = [QuizQuestion('Where does it happen?', ['Chloroplast', 'Nucleus'], ['Chloroplast'], 'Organelle')]
    assert asyncio.run(generate_quiz_feedback(provider, missed, 'en')) == '- Review the light reactions'
    task, payload = provider.calls[0]
    assert task == 'quiz_feedback'
    assert payload['incorrect'] == [
        {'question': 'Where does it happen?', 'correct_answer': ['Chloroplast'], 'explanation': 'Organelle'},
    ]


def test_quiz_feedback_skips_call_when_nothing_missed():
    provider = FakeProvider(error=GenerationError(kind='unavailable', message='down'))
    assert asyncio.run(generate_quiz_feedback(provider, [])) == ''
    assert provider.calls == []


def test_quiz_feedback_rejects_empty_output():
    missed = [QuizQuestion('Q', [], ['a'])]
    with pytest.raises(GenerationError) as exc:
        asyncio.run(generate_quiz_feedback(FakeProvider(canned={'quiz_feedback': {}}), missed))
    assert exc.value.kind == 'invalid_schema'
