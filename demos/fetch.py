import asyncio
import logging
import sys

from restorch import ClientConfig, RestClient, Response


def response_str(response: Response) -> str:
    sep = '-------------------------'
    result = f'\n{sep}\n'
    if not response.is_success:
        result += f'request failed: ({response.get("error_code")}) {response.error}\n'
    else:
        result += f'status: {response.http_code}\n'
        for label, value in response.header.items():
            result += f'{label}:{value}\n'
        result += f'\n{response.data}\n'
    result += f'total time: {response.total_time}s\n{sep}'
    return result


async def main() -> int:
    if len(sys.argv) < 2:
        url = input('Enter a URL to fetch: ').strip()
    else:
        url = sys.argv[1].strip()

    logging.basicConfig(level=logging.INFO)
    config = ClientConfig(retries_max=3, log_retries=True, slow_response=1.0)

    async with RestClient(config=config) as client:
        response = await client.get(url)

    if response is None:
        return 1

    print(response_str(response))
    for entry in client.get_profiling():
        print(entry.as_dict())

    return 0 if response.is_success else 1


if __name__ == '__main__':
    sys.exit(
        asyncio.run(main())
    )
