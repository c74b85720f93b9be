"""
Report Data Normalizer

レポートAPIのレスポンスはエンドポイントごとに構造が異なるため、
ドット区切りのパスでデータ部分を取り出し、必要に応じて配列を辞書に変換します。
"""


def extract_data_property(payload, data_property):
    """
    ドット区切りのパス (例: 'data' / 'response.items') でデータを取り出します。
    途中のキーが存在しない場合は例外ではなく None を返します。
    """
    if not data_property:
        return payload

    current = payload
    for key in data_property.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def get_length(value):
    """配列・文字列は要素数、辞書はキー数を返します。それ以外は None。"""
    if isinstance(value, (list, tuple, str, dict)):
        return len(value)
    return None


def array_to_object(items, object_key):
    """
    辞書の配列を、各要素の object_key の値をキーとする辞書に変換します。
    キーが重複した場合は後の要素で上書きします。
    """
    if items is None:
        return None

    result = {}
    skipped = 0
    for item in items:
        if isinstance(item, dict) and object_key in item:
            result[item[object_key]] = item
        else:
            skipped += 1

    if skipped:
        print(f"  -> Warn: '{object_key}' を持たない要素を {skipped} 件スキップしました。")
    return result
