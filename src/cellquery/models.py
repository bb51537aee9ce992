"""Result and Response containers for decoded query responses."""
from typing import Any, Dict, Iterable, Iterator, List, Optional

from cellquery.errors import DecodeError


class Result:
    """Matches for one requested identifier (or one filter group)."""

    def __init__(
        self,
        id: Optional[str] = None,
        items: Optional[List[Any]] = None,
        num_total_results: int = 0,
        num_results: Optional[int] = None,
        db_time: int = 0,
        result_type: Optional[str] = None,
        warning_msg: Optional[str] = None,
        error_msg: Optional[str] = None,
    ):
        self.id = id
        self.items = list(items) if items is not None else []
        self.num_total_results = num_total_results
        self.num_results = len(self.items) if num_results is None else num_results
        self.db_time = db_time
        self.result_type = result_type
        self.warning_msg = warning_msg
        self.error_msg = error_msg

    def is_truncated(self, limit: int) -> bool:
        """Return True if this page was cut off at the page size."""
        return len(self.items) == limit

    def extend(self, other: 'Result') -> None:
        """Append the items of a follow-up page to this result."""
        self.items.extend(other.items)
        self.num_results = len(self.items)
        self.db_time += other.db_time

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Result':
        if not isinstance(data, dict):
            raise DecodeError(f"Result entry must be an object, got {type(data).__name__}")

        items = data.get('result')
        if items is None:
            items = []
        if not isinstance(items, list):
            raise DecodeError(f"Result 'result' field must be a list, got {type(items).__name__}")

        # Counters may come back as null
        return cls(
            id=data.get('id'),
            items=items,
            num_total_results=data.get('numTotalResults') or 0,
            num_results=data.get('numResults'),
            db_time=data.get('dbTime') or 0,
            result_type=data.get('resultType'),
            warning_msg=data.get('warningMsg'),
            error_msg=data.get('errorMsg'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'dbTime': self.db_time,
            'numResults': self.num_results,
            'numTotalResults': self.num_total_results,
            'resultType': self.result_type,
            'warningMsg': self.warning_msg,
            'errorMsg': self.error_msg,
            'result': self.items,
        }

    def __repr__(self) -> str:
        return (
            f"Result(id={self.id!r}, num_results={self.num_results}, "
            f"num_total_results={self.num_total_results})"
        )


class Response:
    """Ordered sequence of Results; position i answers requested id i."""

    def __init__(
        self,
        results: Optional[List[Result]] = None,
        api_version: Optional[str] = None,
        time: int = 0,
        warning: Optional[str] = None,
        error: Optional[str] = None,
        query_options: Optional[Dict[str, Any]] = None,
    ):
        self.results = list(results) if results is not None else []
        self.api_version = api_version
        self.time = time
        self.warning = warning
        self.error = error
        self.query_options = query_options or {}

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[Result]:
        return iter(self.results)

    def __getitem__(self, index: int) -> Result:
        return self.results[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Response):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Response(results={len(self.results)}, api_version={self.api_version!r})"

    @classmethod
    def from_dict(cls, data: Any) -> 'Response':
        """
        Decode a response body.

        Args:
            data: Parsed JSON body

        Returns:
            Response with one Result per entry of the body's ``response`` array

        Raises:
            DecodeError: If the body does not have the expected structure
        """
        if not isinstance(data, dict):
            raise DecodeError(f"Response body must be a JSON object, got {type(data).__name__}")

        entries = data.get('response')
        if not isinstance(entries, list):
            raise DecodeError("Response body is missing the 'response' array")

        return cls(
            results=[Result.from_dict(entry) for entry in entries],
            api_version=data.get('apiVersion'),
            time=data.get('time') or 0,
            warning=data.get('warning'),
            error=data.get('error'),
            query_options=data.get('queryOptions'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'apiVersion': self.api_version,
            'time': self.time,
            'warning': self.warning,
            'error': self.error,
            'queryOptions': self.query_options,
            'response': [result.to_dict() for result in self.results],
        }

    @classmethod
    def merge(cls, responses: Iterable['Response']) -> 'Response':
        """
        Concatenate responses positionally into one.

        Metadata is taken from the first response; times are summed.
        """
        merged = cls()
        for index, response in enumerate(responses):
            if index == 0:
                merged.api_version = response.api_version
                merged.warning = response.warning
                merged.error = response.error
                merged.query_options = dict(response.query_options)
            merged.time += response.time
            merged.results.extend(response.results)
        return merged
