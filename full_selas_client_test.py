"""
Selas Python 客户端完整功能测试

运行前请设置环境变量 SELAS_APP_ID / SELAS_APP_KEY / SELAS_APP_SECRET。
该脚本将顺序执行：
1. echo 连通性检查
2. 创建用户并充值积分
3. Token 生命周期（创建、查询、注销）
4. 提交 StableDiffusion 任务并等待推送结果
5. 查询用户任务历史

注意：提交任务会消耗积分，请谨慎运行。
"""

from __future__ import annotations

import sys
from pathlib import Path

# 确保可以导入仓库下的本地包
sys.path.insert(0, str(Path(__file__).resolve().parent))

from pyselas import (  # noqa: E402
    Credentials,
    SelasError,
    StableDiffusionConfig,
    create_selas_client,
    wait_for_job_result,
)

PROMPT = "banana in the kitchen"
RESULT_TIMEOUT = 300.0


def _check(response, what: str):
    data, error = response
    if error is not None:
        raise AssertionError(f"{what} 失败: {error}")
    return data


def main() -> None:
    try:
        credentials = Credentials.from_env()
    except SelasError as exc:
        raise SystemExit(f"请先设置 Selas 凭证环境变量: {exc}")

    selas = create_selas_client(credentials)

    try:
        print("===> 测试：echo")
        assert _check(selas.echo("Hello"), "echo") == "Hello", "echo 返回值不一致"

        print("===> 测试：创建用户与积分")
        user = _check(selas.create_app_user(), "创建用户")
        print("新用户:", user)
        credits = _check(selas.add_credit(user, 10), "充值积分")
        print("充值后积分:", credits)
        print("查询积分:", _check(selas.get_app_user_credits(user), "查询积分"))

        print("===> 测试：Token 生命周期")
        token = _check(selas.create_token(user), "创建 Token")
        assert _check(selas.get_app_user_token(user), "查询 Token") == token, "Token 不一致"
        assert _check(selas.deactivate_app_user(user), "注销用户") is True, "注销失败"
        again = selas.deactivate_app_user(user)
        print("重复注销返回错误:", again.error)

        print("===> 测试：StableDiffusion 任务")
        config = StableDiffusionConfig(
            steps=28,
            skip_steps=0,
            batch_size=1,
            sampler="k_euler",
            guidance_scale=10,
            width=512,
            height=512,
            prompt=PROMPT,
            negative_prompt="ugly",
            image_format="jpeg",
            translate_prompt=False,
            nsfw_filter=False,
        )
        print("任务配置:", config.to_json())
        job = _check(selas.run_stable_diffusion(config), "提交任务")
        print("任务 ID:", job)
        result = wait_for_job_result(selas.subscriber, str(job), timeout=RESULT_TIMEOUT)
        print("任务结果:", result)

        print("===> 测试：任务历史")
        history = _check(selas.get_app_user_job_history_detail(user, limit=10, offset=0), "任务历史")
        print("历史记录数:", len(history or []))

        print("\n[OK] 全部测试通过")

    except SelasError as exc:
        print(f"\n[ERR] API 调用失败: {exc}", file=sys.stderr)
        raise
    finally:
        selas.close()


if __name__ == "__main__":
    main()
