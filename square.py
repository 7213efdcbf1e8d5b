# square.py
"""정점 색상 사각형 데모 (투영 행렬 + 이동만 적용한 정적 장면)"""

import argparse

import wgpu
from rendercanvas.auto import RenderCanvas, loop

from _renderer import SquareRenderer


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="wgpu-py 무지개 사각형")
    parser.add_argument("--verbose", action="store_true", help="초기화 로그 출력")
    args = parser.parse_args(argv)

    canvas = RenderCanvas(title="wgpu-py Rainbow Square", size=(640, 480))
    adapter = wgpu.gpu.request_adapter_sync(power_preference="high-performance")
    if adapter is None:
        raise RuntimeError("적절한 GPU 어댑터를 찾지 못했습니다.")

    device = adapter.request_device_sync()

    context = canvas.get_context("wgpu")
    texture_format = context.get_preferred_format(adapter)
    context.configure(device=device, format=texture_format)

    renderer = SquareRenderer(device, texture_format, verbose=args.verbose)
    canvas.request_draw(lambda: renderer.draw_frame(context))
    loop.run()


if __name__ == "__main__":
    main()
