"""層間インターフェース定義。

全ての層はこのパッケージのデータモデルと抽象クラスにのみ依存する。
weight_tracker/store/ の実装に直接依存してはならない。
"""
