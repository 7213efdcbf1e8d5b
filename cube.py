# cube.py
"""
텍스처를 입힌 회전 큐브 데모 (행렬 기반 변형)

사용법:
    uv run python cube.py
    uv run python cube.py --wireframe
"""

import argparse

import wgpu
from rendercanvas.auto import RenderCanvas, loop

from _renderer import TexturedCubeRenderer


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="wgpu-py 회전 큐브")
    parser.add_argument("--width", type=int, default=640, help="창 너비 (기본값: 640)")
    parser.add_argument("--height", type=int, default=480, help="창 높이 (기본값: 480)")
    parser.add_argument("--wireframe", action="store_true", help="솔리드 위에 와이어프레임 표시")
    parser.add_argument("--texture-size", type=int, default=64,
                        help="체커보드 텍스처 크기, 2의 거듭제곱 (기본값: 64)")
    parser.add_argument("--verbose", action="store_true", help="초기화 로그 출력")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)

    canvas = RenderCanvas(title="wgpu-py Rotating Cube", size=(args.width, args.height),
                          update_mode="continuous")
    adapter = wgpu.gpu.request_adapter_sync(power_preference="high-performance")
    if adapter is None:
        raise RuntimeError("적절한 GPU 어댑터를 찾지 못했습니다.")

    device = adapter.request_device_sync()

    context = canvas.get_context("wgpu")
    texture_format = context.get_preferred_format(adapter)
    context.configure(device=device, format=texture_format)

    # 렌더링 로직을 캡슐화한 렌더러 인스턴스 생성
    renderer = TexturedCubeRenderer(device, texture_format, wireframe=args.wireframe,
                                    texture_size=args.texture_size, verbose=args.verbose)

    canvas.request_draw(lambda: renderer.draw_frame(context))

    print("wgpu-py 렌더링 루프를 시작합니다. 창을 닫으면 종료됩니다.")
    loop.run()


if __name__ == "__main__":
    main()
