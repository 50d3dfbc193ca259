from slicestore import create_selector, select_key

# 定義Selectors
get_count = select_key("count", default=0)
get_loading = select_key("loading", default=False)
get_error = select_key("error")
get_last_updated = select_key("last_updated")
# 创建一个复合选择器
get_counter_info = create_selector(
    get_count,
    get_last_updated,
    result_fn=lambda count, last_updated: {"count": count, "last_updated": last_updated},
)
