import pytest
from cellquery.errors import DecodeError
from cellquery.models import Response, Result


SAMPLE_BODY = {
    'apiVersion': 'v5',
    'time': 12,
    'warning': '',
    'error': '',
    'queryOptions': {'limit': 1000},
    'response': [
        {
            'id': 'BRCA2',
            'dbTime': 3,
            'numResults': 1,
            'numTotalResults': 1,
            'resultType': 'Gene',
            'result': [{'id': 'ENSG00000139618', 'name': 'BRCA2'}],
        },
        {
            'id': 'TP53',
            'dbTime': 2,
            'numResults': 0,
            'numTotalResults': 0,
            'result': [],
        },
    ],
}


def test_response_from_dict_decodes_results_in_order():
    response = Response.from_dict(SAMPLE_BODY)

    assert len(response) == 2
    assert response.api_version == 'v5'
    assert response.time == 12
    assert [r.id for r in response] == ['BRCA2', 'TP53']
    assert response[0].items == [{'id': 'ENSG00000139618', 'name': 'BRCA2'}]
    assert response[0].result_type == 'Gene'
    assert response[1].num_total_results == 0


def test_response_to_dict_uses_wire_field_names():
    encoded = Response.from_dict(SAMPLE_BODY).to_dict()

    assert encoded['apiVersion'] == 'v5'
    assert encoded['queryOptions'] == {'limit': 1000}
    assert encoded['response'][0]['numTotalResults'] == 1
    assert encoded['response'][0]['result'] == [{'id': 'ENSG00000139618', 'name': 'BRCA2'}]
    assert encoded['response'][1]['resultType'] is None


def test_result_missing_items_treated_as_empty():
    result = Result.from_dict({'id': 'x', 'result': None})
    assert result.items == []
    assert result.num_results == 0


@pytest.mark.parametrize('body, match', [
    ([], 'must be a JSON object'),
    ({'apiVersion': 'v5'}, "missing the 'response' array"),
    ({'response': {'id': 'x'}}, "missing the 'response' array"),
    ({'response': ['oops']}, 'must be an object'),
    ({'response': [{'result': 'oops'}]}, 'must be a list'),
])
def test_response_from_dict_rejects_bad_shapes(body, match):
    with pytest.raises(DecodeError, match=match):
        Response.from_dict(body)


def test_result_truncation_is_exact_match_on_limit():
    result = Result(items=list(range(10)))
    assert result.is_truncated(10)
    assert not result.is_truncated(11)
    assert not Result(items=[]).is_truncated(10)


def test_result_extend_appends_and_updates_count():
    result = Result(id='a', items=[1, 2], num_total_results=5, db_time=1)
    result.extend(Result(id='a', items=[3, 4], num_total_results=5, db_time=2))
    result.extend(Result(id='a', items=[], num_total_results=5))

    assert result.items == [1, 2, 3, 4]
    assert result.num_results == 4
    assert result.num_total_results == 5
    assert result.db_time == 3


def test_response_merge_concatenates_positionally():
    first = Response(results=[Result(id='a'), Result(id='b')], api_version='v5', time=2)
    second = Response(results=[Result(id='c')], api_version='v5', time=3)

    merged = Response.merge([first, second])

    assert [r.id for r in merged] == ['a', 'b', 'c']
    assert merged.api_version == 'v5'
    assert merged.time == 5


def test_response_merge_of_nothing_is_empty():
    merged = Response.merge([])
    assert len(merged) == 0


def test_response_equality_compares_content():
    assert Response.from_dict(SAMPLE_BODY) == Response.from_dict(SAMPLE_BODY)
    assert Response(results=[Result(id='a')]) != Response(results=[Result(id='b')])


def test_null_counters_decode_as_zero():
    body = {
        'time': None,
        'response': [{'id': 'a', 'dbTime': None, 'numTotalResults': None, 'numResults': None, 'result': [1]}],
    }

    response = Response.from_dict(body)

    assert response.time == 0
    assert response[0].db_time == 0
    assert response[0].num_total_results == 0
    assert response[0].num_results == 1
    assert Response.merge([response, response]).time == 0
