'''
The request options map and the helpers that shape it: merging call options
over instance options, flattening URL parameters, and turning the map into
the keyword arguments httpx expects.
'''
import logging
import urllib.parse
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RequestOptions = dict[str, Any]

DEFAULT_OPTIONS: Mapping[str, Any] = MappingProxyType({
    'connect_timeout': 2.0,
    'timeout': 10.0,
    'user_agent': 'restorch/',
    'referer': '',
    'follow_redirects': False,
    'headers': MappingProxyType({
        'Accept': 'application/json',
        'Accept-Language': 'en-us,en',
        'Accept-Encoding': 'gzip, deflate',
    }),
})

KNOWN_OPTIONS = frozenset({
    *DEFAULT_OPTIONS,
    'method',
    'nobody',
    'data',
    'json',
    'auth',
    'auth_type',
})


def default_options(version: str) -> RequestOptions:
    options = dict(DEFAULT_OPTIONS)
    options['headers'] = dict(DEFAULT_OPTIONS['headers'])
    options['user_agent'] += version
    return options


def check_options(options: Any) -> RequestOptions:
    '''
    Validate a caller supplied options map. A non-mapping is ignored and
    unknown option names are dropped, both with a warning.

    Parameters
    ----------
    options : Any

    Returns
    -------
    RequestOptions
    '''
    if options is None:
        return {}

    if not isinstance(options, Mapping):
        logger.warning(
            f'ignoring request options of type {type(options).__name__}, expected a mapping'
        )
        return {}

    checked: RequestOptions = {}
    for key, value in options.items():
        if key not in KNOWN_OPTIONS:
            logger.warning(f'ignoring unknown request option {key!r}')
            continue
        checked[key] = value
    return checked


def merge_options(
    base: Mapping[str, Any],
    overrides: Any = None,
    *,
    replace_headers: bool = False,
) -> RequestOptions:
    '''
    Merge call options over instance options. Call options win, except
    `headers`, which are merged label by label unless `replace_headers`.

    Parameters
    ----------
    base : Mapping[str, Any]
    overrides : Any, optional
        Validated with `check_options`
    replace_headers : bool, optional

    Returns
    -------
    RequestOptions
    '''
    merged = dict(base)
    merged['headers'] = dict(base.get('headers') or {})

    for key, value in check_options(overrides).items():
        if key == 'headers' and not replace_headers:
            merged['headers'].update(value or {})
        elif key == 'headers':
            merged['headers'] = dict(value or {})
        else:
            merged[key] = value

    return merged


def array_to_url_params(params: Mapping[str, Any], delimiter: str = '&') -> str:
    '''
    Flatten a mapping into URL parameters, repeating the key for every item
    of a list or tuple value:

        >>> array_to_url_params({'foo': 'bar', 'test': [1, 2]})
        'foo=bar&test=1&test=2'

    Parameters
    ----------
    params : Mapping[str, Any]
    delimiter : str, optional
        Joins the pairs, by default '&'

    Returns
    -------
    str
    '''
    pairs = []
    for key, value in params.items():
        values = value if isinstance(value, (list, tuple)) else (value,)
        for item in values:
            pairs.append(
                f'{urllib.parse.quote_plus(str(key))}={urllib.parse.quote_plus(str(item))}'
            )
    return delimiter.join(pairs)


def append_url_params(url: str, params: Mapping[str, Any] | str | None) -> str:
    if params is None:
        return url

    if isinstance(params, Mapping):
        if not params:
            return url
        query = array_to_url_params(params)
    else:
        query = str(params)

    separator = '&' if '?' in url else '?'
    return f'{url}{separator}{query}'


def _build_auth(options: Mapping[str, Any]) -> httpx.Auth | None:
    auth = options.get('auth')
    if auth is None or isinstance(auth, httpx.Auth):
        return auth

    if not isinstance(auth, (list, tuple)) or len(auth) != 2:
        logger.warning(
            f'ignoring auth option of type {type(auth).__name__}, '
            'expected a (username, password) pair'
        )
        return None

    username, password = auth
    auth_type = (options.get('auth_type') or 'basic').lower()
    if auth_type == 'digest':
        return httpx.DigestAuth(username, password)

    if auth_type != 'basic':
        logger.warning(f'unknown auth type {auth_type!r}, falling back to basic')
    return httpx.BasicAuth(username, password)


def to_request_kwargs(options: Mapping[str, Any]) -> dict[str, Any]:
    '''
    The keyword arguments for `httpx.AsyncClient.build_request`.
    A body is attached whenever one is given, whatever the method.
    '''
    headers = dict(options.get('headers') or {})
    if user_agent := options.get('user_agent'):
        headers.setdefault('User-Agent', user_agent)
    if referer := options.get('referer'):
        headers.setdefault('Referer', referer)

    method = 'HEAD' if options.get('nobody') else options.get('method') or 'GET'

    kwargs: dict[str, Any] = {
        'method': method.upper(),
        'headers': headers,
        'timeout': httpx.Timeout(
            options.get('timeout'),
            connect=options.get('connect_timeout'),
        ),
    }

    body = options.get('data')
    if options.get('json') is not None:
        kwargs['json'] = options['json']
    elif isinstance(body, Mapping):
        kwargs['data'] = dict(body)
    elif isinstance(body, (str, bytes)):
        kwargs['content'] = body
    elif body is not None:
        kwargs['content'] = str(body)

    return kwargs


def to_send_kwargs(options: Mapping[str, Any]) -> dict[str, Any]:
    '''
    The keyword arguments for `httpx.AsyncClient.send`.
    '''
    return {
        'auth': _build_auth(options),
        'follow_redirects': bool(options.get('follow_redirects')),
    }
