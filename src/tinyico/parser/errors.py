"""アイコン解析エラー定義

ICOコンテナの解析・デコード中に発生する例外を定義する。
コンテナ構造そのものが不正な場合と、個々の画像データが不正な場合の
2種類に大別される。
"""


class IconError(Exception):
    """アイコン処理に関する例外の基底クラス"""

    pass


class InvalidIconError(IconError):
    """ICOコンテナとして不正なデータ

    reserved/typeフィールドの不一致、エントリ数0、最小サイズ未満など、
    ファイル全体がICOとして解釈できない場合に送出される。
    """

    pass


class InvalidIconDataError(IconError):
    """ICOコンテナ内の画像データが不正

    未対応のbitCount、認識できない画像ヘッダー、壊れたPNGシグネチャなど、
    ディレクトリエントリまたはDIBヘッダーの値が不正な場合に送出される。
    """

    pass


class IconBoundsError(InvalidIconDataError):
    """バッファ範囲外の読み取り"""

    pass
