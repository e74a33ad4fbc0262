"""
Shared Hypothesis strategies for property-based testing across dpagg.
"""
# 说明：属性测试中共享的 Hypothesis 策略集。
# 职责：
# - 提供隐私参数（epsilon, delta）与预算请求序列的复用生成策略
# - 生成 (身份, 分区, 值) 形式的记录流，身份与分区数量受控，允许重复记录
# - 暴露稳定的 RNG 种子生成策略以支持可复现性测试

from hypothesis import strategies as st


# ------------------------------------------------------------------ Basic Types
@st.composite
def epsilons(draw):
    # 生成合法且正值的 epsilon 参数，避免数值下溢或极值导致计算异常
    return draw(st.floats(min_value=1e-3, max_value=10.0, allow_nan=False, allow_infinity=False))


@st.composite
def deltas(draw):
    # 生成 [0, 1e-3] 内的 δ，覆盖 δ = 0 的纯 DP 情形
    return draw(st.one_of(st.just(0.0), st.floats(min_value=1e-9, max_value=1e-3)))


@st.composite
def budget_requests(draw, max_size=8):
    # 一串 (ε, δ) 分配请求，包含零请求
    return draw(
        st.lists(
            st.tuples(
                st.one_of(st.just(0.0), st.floats(min_value=0.0, max_value=2.0)),
                st.one_of(st.just(0.0), st.floats(min_value=0.0, max_value=1e-4)),
            ),
            min_size=1,
            max_size=max_size,
        )
    )


# ------------------------------------------------------------------ Records
@st.composite
def records(draw, max_ids=8, max_partitions=6, max_records=40, min_value=-5.0, max_value=20.0):
    # 构造 (privacy_id, partition, value) 记录流；同一 (身份, 分区) 可出现多次
    ids = [f"user{i}" for i in range(draw(st.integers(1, max_ids)))]
    partitions = [f"p{j}" for j in range(draw(st.integers(1, max_partitions)))]
    return draw(
        st.lists(
            st.tuples(
                st.sampled_from(ids),
                st.sampled_from(partitions),
                st.floats(min_value=min_value, max_value=max_value, allow_nan=False, allow_infinity=False),
            ),
            max_size=max_records,
        )
    )


# ------------------------------------------------------------------ Helper objects
@st.composite
def seeds(draw):
    # 提供整数种子，用于初始化随机数生成器以进行可复现性验证
    return draw(st.integers(min_value=0, max_value=2**32 - 1))
