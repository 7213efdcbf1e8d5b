# cubes.py
"""
무작위 와이어프레임 큐브 데모 (수동 투영)

각 꼭짓점을 CPU 에서 직접 원근 나눗셈하여 2D 선분으로 만든 뒤 GPU 에는
화면 좌표 선분만 넘깁니다.

사용법:
    uv run python cubes.py
    uv run python cubes.py --count 300 --seed 7
    uv run python cubes.py --fov-factor 1.2
"""

import argparse

import wgpu
from rendercanvas.auto import RenderCanvas, loop

from _renderer import WireframeRenderer
from _scene import DEFAULT_CUBE_COUNT, FOV_FACTOR, Scene


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="수동 투영 와이어프레임 큐브")
    parser.add_argument("--count", type=int, default=DEFAULT_CUBE_COUNT,
                        help=f"큐브 개수 (기본값: {DEFAULT_CUBE_COUNT})")
    parser.add_argument("--seed", type=int, default=None, help="난수 시드")
    parser.add_argument("--width", type=int, default=800, help="창 너비 (기본값: 800)")
    parser.add_argument("--height", type=int, default=600, help="창 높이 (기본값: 600)")
    parser.add_argument("--fov-factor", type=float, default=FOV_FACTOR,
                        help=f"초점 거리 = 창 너비 * 이 값 (기본값: {FOV_FACTOR})")
    parser.add_argument("--verbose", action="store_true", help="초기화 로그 출력")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    if args.count < 0:
        raise SystemExit("--count 는 0 이상이어야 합니다.")

    canvas = RenderCanvas(title="wgpu-py Wireframe Cubes", size=(args.width, args.height),
                          update_mode="continuous")
    adapter = wgpu.gpu.request_adapter_sync(power_preference="high-performance")
    if adapter is None:
        raise RuntimeError("적절한 GPU 어댑터를 찾지 못했습니다.")

    device = adapter.request_device_sync()

    context = canvas.get_context("wgpu")
    texture_format = context.get_preferred_format(adapter)
    context.configure(device=device, format=texture_format)

    # 장면은 시작할 때 한 번만 생성되고 이후 변경되지 않습니다
    scene = Scene.random(args.count, extent=args.width, seed=args.seed)
    renderer = WireframeRenderer(device, texture_format, scene,
                                 field_of_view=args.width * args.fov_factor,
                                 verbose=args.verbose)

    # 투영과 화면 중심은 field_of_view 와 같은 논리 좌표 단위
    canvas.request_draw(lambda: renderer.draw_frame(context, canvas.get_logical_size()))

    print(f"큐브 {len(scene)}개 렌더링을 시작합니다. 창을 닫으면 종료됩니다.")
    loop.run()


if __name__ == "__main__":
    main()
