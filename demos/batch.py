import asyncio
import sys

from restorch import ClientConfig, ClientContext, RestClient, Response

BASE_URL = 'https://httpbin.org'


async def main() -> int:
    codes = [int(code) for code in sys.argv[1:]] or [200, 201, 404, 418]

    context = ClientContext()
    results: dict[int, int | None] = {}

    def record(code: int):
        def callback(response: Response) -> None:
            results[code] = response.http_code
        return callback

    config = ClientConfig(queue_enabled=True)
    async with RestClient(context=context, config=config) as client:
        for code in codes:
            await client.get(f'{BASE_URL}/status/{code}', callback=record(code))

        print(f'running {len(context.queue)} requests...')
        await context.process_queue()

    for code in codes:
        print(f'/status/{code} -> {results.get(code)}')

    for entry in context.get_profiling():
        print(entry.as_dict())

    return 0 if all(results.get(code) == code for code in codes) else 1


if __name__ == '__main__':
    sys.exit(
        asyncio.run(main())
    )
