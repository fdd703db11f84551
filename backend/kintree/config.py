"""
运行配置，从环境变量读取
"""
import os

# 数据文件路径
DATA_DIR = os.path.join(os.path.dirname(__file__), "data")
DEFAULT_TERMS_PATH = os.path.join(DATA_DIR, "kinship_terms.csv")

DB_PATH = os.getenv("KINTREE_DB_PATH", os.path.join(".", "data", "kintree.db"))
TERMS_PATH = os.getenv("KINTREE_TERMS_PATH", DEFAULT_TERMS_PATH)
DEFAULT_REGION = os.getenv("KINTREE_DEFAULT_REGION", "default")
LOG_LEVEL = os.getenv("KINTREE_LOG_LEVEL", "INFO")

# 服务监听地址
HOST = os.getenv("KINTREE_HOST", "127.0.0.1")
PORT = int(os.getenv("KINTREE_PORT", "8000"))
